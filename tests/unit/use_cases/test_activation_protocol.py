"""Unit tests for ActivationProtocol use case

Tests cover:
- Successful activation: ACTIVE, dates set, queue compacted, device onboarded
- Welcome notification only on first onboarding
- Wrong code leaves the subscription QUEUED
- Precondition order: owner, status, device binding
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock

from src.app.use_cases.subscriptions.activation_protocol import ActivationProtocol
from src.domain.ledger_entry import LedgerEventType
from src.domain.notification import NotificationKind
from src.domain.subscription import SubscriptionStatus


@pytest.fixture
def activation(mock_uow, components):
    return ActivationProtocol(
        uow=mock_uow,
        lifecycle=components.lifecycle,
        device_registry=components.device_registry,
        ledger=components.ledger,
    )


@pytest.mark.asyncio
class TestActivationSuccess:

    async def test_activates_queued_subscription(
        self, activation, repos, mock_uow, otp_verifier, add_device, add_subscription, now, user_actor
    ):
        """
        Given: QUEUED subscription at "1" and another request at "2"
        When: The owner submits a valid code from the bound device
        Then: ACTIVE for the plan duration, next request moves to "1", device onboarded
        """
        # Arrange
        device = add_device("HW1")
        subscription = add_subscription(status=SubscriptionStatus.QUEUED, position="1")
        waiting = add_subscription(position="2", user_id="user_2")

        # Act
        result = await activation.execute(user_actor, subscription.id, "HW1", "123456")

        # Assert
        assert result.is_ok()
        assert result.value.status == SubscriptionStatus.ACTIVE.value
        assert result.value.start_date == now
        assert result.value.end_date == now + timedelta(days=30)
        assert result.value.queue_position is None
        assert waiting.queue_position == "1"
        assert device.is_onboarded
        assert device.onboarded_at == now

        otp_verifier.verify.assert_called_once_with(device.activation_secret, "123456")
        assert repos.outbox[-1].kind == NotificationKind.WELCOME
        assert repos.entries[-1].event_type == LedgerEventType.ACTIVATED
        assert mock_uow.commit.call_count == 2

    async def test_no_welcome_for_onboarded_device(
        self, activation, repos, add_device, add_subscription, user_actor
    ):
        add_device("HW1", onboarded=True)
        subscription = add_subscription(status=SubscriptionStatus.QUEUED, position="1")

        result = await activation.execute(user_actor, subscription.id, "HW1", "123456")

        assert result.is_ok()
        assert all(m.kind != NotificationKind.WELCOME for m in repos.outbox)

    async def test_ledger_failure_keeps_activation(
        self, activation, repos, mock_uow, add_device, add_subscription, user_actor
    ):
        # Arrange
        add_device("HW1")
        subscription = add_subscription(status=SubscriptionStatus.QUEUED, position="1")
        repos.ledger_repo.create = AsyncMock(side_effect=Exception("ledger down"))

        # Act
        result = await activation.execute(user_actor, subscription.id, "HW1", "123456")

        # Assert
        assert result.is_ok()
        assert result.value.status == SubscriptionStatus.ACTIVE.value


@pytest.mark.asyncio
class TestActivationFailure:

    async def test_wrong_code(
        self, activation, repos, mock_uow, otp_verifier, add_device, add_subscription, user_actor
    ):
        """
        Given: A code outside the tolerance window
        When: Activation is attempted
        Then: Authorization error, subscription still QUEUED, nothing committed
        """
        # Arrange
        device = add_device("HW1")
        subscription = add_subscription(status=SubscriptionStatus.QUEUED, position="1")
        otp_verifier.verify.return_value = False

        # Act
        result = await activation.execute(user_actor, subscription.id, "HW1", "000000")

        # Assert
        assert result.is_err()
        assert result.error.code == "INVALID_ACTIVATION_CODE"
        assert result.error.kind == "authorization"
        assert subscription.status == SubscriptionStatus.QUEUED
        assert subscription.queue_position == "1"
        assert not device.is_onboarded
        mock_uow.commit.assert_not_called()
        mock_uow.rollback.assert_called_once()

    async def test_not_owner(self, activation, otp_verifier, add_device, add_subscription, other_user_actor):
        add_device("HW1")
        subscription = add_subscription(status=SubscriptionStatus.QUEUED, position="1")

        result = await activation.execute(other_user_actor, subscription.id, "HW1", "123456")

        assert result.is_err()
        assert result.error.code == "NOT_SUBSCRIPTION_OWNER"
        otp_verifier.verify.assert_not_called()

    async def test_pending_not_activatable(self, activation, add_device, add_subscription, user_actor):
        add_device("HW1")
        subscription = add_subscription(status=SubscriptionStatus.PENDING, position="1")

        result = await activation.execute(user_actor, subscription.id, "HW1", "123456")

        assert result.is_err()
        assert result.error.code == "SUBSCRIPTION_NOT_QUEUED"

    async def test_device_mismatch(self, activation, add_device, add_subscription, user_actor):
        add_device("HW1")
        add_device("HW2")
        subscription = add_subscription(status=SubscriptionStatus.QUEUED, position="1")

        result = await activation.execute(user_actor, subscription.id, "HW2", "123456")

        assert result.is_err()
        assert result.error.code == "DEVICE_MISMATCH"

    async def test_device_already_active(
        self, activation, add_device, add_subscription, now, user_actor
    ):
        add_device("HW1")
        add_subscription(
            status=SubscriptionStatus.ACTIVE,
            user_id="user_2",
            start_date=now,
            end_date=now + timedelta(days=5),
        )
        subscription = add_subscription(status=SubscriptionStatus.QUEUED, position="1")

        result = await activation.execute(user_actor, subscription.id, "HW1", "123456")

        assert result.is_err()
        assert result.error.code == "DEVICE_HAS_ACTIVE_SUBSCRIPTION"
        assert subscription.status == SubscriptionStatus.QUEUED
