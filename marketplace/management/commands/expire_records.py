import logging

from django.core.management.base import BaseCommand

from infrastructure.container import container


logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Expires ACTIVE certificates and insurance policies that are past their end date."

    def add_arguments(self, parser):
        parser.add_argument("--certificates-only", action="store_true", help="Skip insurance policies")
        parser.add_argument("--policies-only", action="store_true", help="Skip certificates")

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("Expiring records..."))

        certificates = policies = 0
        if not options["policies_only"]:
            certificates = container.certificate_service().expire_certificates()
            self.stdout.write(f"Expired {certificates} certificates.")
        if not options["certificates_only"]:
            policies = container.insurance_service().expire_policies()
            self.stdout.write(f"Expired {policies} insurance policies.")

        logger.info(f"expire_records finished: certificates={certificates} policies={policies}")
        self.stdout.write(self.style.SUCCESS("Expiry run complete."))
