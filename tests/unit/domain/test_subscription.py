"""Unit tests for the Subscription entity

Tests cover:
- Allowed and forbidden status transitions
- Terminal states
- Queue membership and numeric positions
- days_remaining rounding
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from src.domain.subscription import Subscription, SubscriptionStatus


def make_subscription(**overrides):
    fields = dict(
        user_id="user_1",
        hardware_id="HW1",
        plan="mobile-v4-basic",
        price=Decimal("1249.99"),
    )
    fields.update(overrides)
    return Subscription(**fields)


class TestTransitions:

    @pytest.mark.parametrize("target", [
        SubscriptionStatus.QUEUED,
        SubscriptionStatus.APPROVED,
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.CANCELLED,
    ])
    def test_pending_can_move_to(self, target):
        assert make_subscription().can_transition_to(target)

    def test_pending_cannot_expire(self):
        assert not make_subscription().can_transition_to(SubscriptionStatus.EXPIRED)

    def test_queued_cannot_go_back_to_pending(self):
        subscription = make_subscription(status=SubscriptionStatus.QUEUED)

        assert not subscription.can_transition_to(SubscriptionStatus.PENDING)
        assert subscription.can_transition_to(SubscriptionStatus.ACTIVE)

    def test_active_can_expire_or_cancel(self):
        subscription = make_subscription(status=SubscriptionStatus.ACTIVE)

        assert subscription.can_transition_to(SubscriptionStatus.EXPIRED)
        assert subscription.can_transition_to(SubscriptionStatus.CANCELLED)
        assert not subscription.can_transition_to(SubscriptionStatus.QUEUED)

    @pytest.mark.parametrize("status", [SubscriptionStatus.EXPIRED, SubscriptionStatus.CANCELLED])
    def test_terminal_states_have_no_exit(self, status):
        subscription = make_subscription(status=status)

        assert subscription.is_terminal
        assert not any(subscription.can_transition_to(target) for target in SubscriptionStatus)


class TestQueueFields:

    def test_in_queue_for_pending_and_queued(self):
        assert make_subscription(status=SubscriptionStatus.PENDING).in_queue
        assert make_subscription(status=SubscriptionStatus.QUEUED).in_queue
        assert not make_subscription(status=SubscriptionStatus.ACTIVE).in_queue

    def test_position_number_is_numeric(self):
        assert make_subscription(queue_position="10").position_number == 10
        assert make_subscription(queue_position=None).position_number is None
        assert make_subscription(queue_position="abc").position_number is None


class TestDaysRemaining:

    def test_rounds_partial_days_up(self):
        now = datetime(2026, 3, 10, 12, 0, 0)
        subscription = make_subscription(
            status=SubscriptionStatus.ACTIVE,
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=2, hours=1),
        )

        assert subscription.days_remaining(now) == 3

    def test_zero_when_past_end(self):
        now = datetime(2026, 3, 10, 12, 0, 0)
        subscription = make_subscription(
            status=SubscriptionStatus.ACTIVE,
            end_date=now - timedelta(hours=1),
        )

        assert subscription.days_remaining(now) == 0

    def test_zero_when_not_active(self):
        now = datetime(2026, 3, 10, 12, 0, 0)
        subscription = make_subscription(
            status=SubscriptionStatus.EXPIRED,
            end_date=now + timedelta(days=5),
        )

        assert subscription.days_remaining(now) == 0
