from django.db import models


class SequenceCounter(models.Model):
    """
    Named monotonic counter backing the human-readable identifiers.

    One row per scope (``order:<tenant_id>``, ``claim``, ...). Rows are only
    ever changed with ``UPDATE ... SET value = value + 1`` inside a transaction,
    so concurrent issuers never observe the same value.
    """

    key = models.CharField(max_length=120, unique=True)
    value = models.BigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "marketplace"
        db_table = "sequence_counters"

    def __str__(self):
        return f"{self.key}={self.value}"
