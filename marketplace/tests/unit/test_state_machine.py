import pytest

from marketplace.domain.exceptions import InvalidTransitionError
from marketplace.ordering.domain.models import Order
from marketplace.ordering.domain.services.state_machine import (
    TERMINAL_STATUSES,
    TIMESTAMP_FIELDS,
    TRANSITIONS,
    allowed_targets,
    can_transition,
    check_transition,
)


@pytest.mark.unit
class TestOrderStateMachine:
    def test_every_status_has_a_row(self):
        assert set(TRANSITIONS) == {code for code, _ in Order.STATUS_CHOICES}

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {Order.STATUS_COMPLETED, Order.STATUS_CANCELLED, Order.STATUS_REFUNDED}

    @pytest.mark.parametrize(
        "current,target",
        [
            ("PENDING", "CONFIRMED"),
            ("PENDING", "CANCELLED"),
            ("CONFIRMED", "PROCESSING"),
            ("PROCESSING", "SHIPPED"),
            ("PROCESSING", "CANCELLED"),
            ("SHIPPED", "DELIVERED"),
            ("DELIVERED", "COMPLETED"),
            ("DELIVERED", "REFUNDED"),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target)
        check_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("PENDING", "SHIPPED"),
            ("SHIPPED", "CANCELLED"),
            ("DELIVERED", "CANCELLED"),
            ("COMPLETED", "REFUNDED"),
            ("CANCELLED", "PENDING"),
            ("PENDING", "PENDING"),
        ],
    )
    def test_rejected(self, current, target):
        assert not can_transition(current, target)
        with pytest.raises(InvalidTransitionError) as exc_info:
            check_transition(current, target)
        assert exc_info.value.details == {"from": current, "to": target}

    def test_unknown_status_has_no_targets(self):
        assert allowed_targets("LOST") == frozenset()

    def test_every_reachable_status_is_timestamped(self):
        reachable = set().union(*TRANSITIONS.values())
        assert reachable == set(TIMESTAMP_FIELDS)
