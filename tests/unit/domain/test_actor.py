"""Unit tests for actor capabilities and the authorization gate

Tests cover:
- Role to capability mapping
- Inactive accounts hold no capabilities
- Owner-or-capability checks
- Approval ceilings
"""

import pytest
from decimal import Decimal

from src.app.use_cases.subscriptions.authorization import (
    authorize,
    authorize_owner_or,
    check_approval_ceiling,
)
from src.domain.actor import ActorContext, Capability, Role
from src.domain.errors import AuthorizationError
from src.domain.subscription import Subscription


class TestCapabilities:

    def test_user_can_only_request(self):
        actor = ActorContext(user_id="u", role=Role.USER)

        assert actor.capabilities == frozenset({Capability.REQUEST_SUBSCRIPTIONS})

    def test_admin_cannot_run_sweep(self):
        actor = ActorContext(user_id="a", role=Role.ADMIN)

        assert actor.has(Capability.APPROVE_SUBSCRIPTIONS)
        assert actor.has(Capability.MANAGE_QUEUE)
        assert not actor.has(Capability.RUN_SWEEP)

    def test_super_admin_has_everything(self):
        actor = ActorContext(user_id="s", role=Role.SUPER_ADMIN)

        assert all(actor.has(capability) for capability in Capability)

    def test_inactive_actor_has_nothing(self):
        actor = ActorContext(user_id="a", role=Role.ADMIN, is_active=False)

        assert not actor.has(Capability.APPROVE_SUBSCRIPTIONS)


class TestAuthorize:

    def test_inactive_account(self):
        actor = ActorContext(user_id="a", role=Role.ADMIN, is_active=False)

        with pytest.raises(AuthorizationError) as exc_info:
            authorize(actor, Capability.APPROVE_SUBSCRIPTIONS)

        assert exc_info.value.code == "ACCOUNT_INACTIVE"

    def test_missing_capability(self):
        actor = ActorContext(user_id="u", role=Role.USER)

        with pytest.raises(AuthorizationError) as exc_info:
            authorize(actor, Capability.MANAGE_QUEUE)

        assert exc_info.value.code == "INSUFFICIENT_PERMISSIONS"

    def test_owner_passes_without_capability(self):
        actor = ActorContext(user_id="u", role=Role.USER)
        subscription = Subscription(user_id="u", hardware_id="HW1", plan="mobile-v4-basic", price=Decimal("1"))

        authorize_owner_or(actor, subscription, Capability.CANCEL_ANY_SUBSCRIPTION)

    def test_non_owner_without_capability(self):
        actor = ActorContext(user_id="other", role=Role.USER)
        subscription = Subscription(user_id="u", hardware_id="HW1", plan="mobile-v4-basic", price=Decimal("1"))

        with pytest.raises(AuthorizationError) as exc_info:
            authorize_owner_or(actor, subscription, Capability.CANCEL_ANY_SUBSCRIPTION)

        assert exc_info.value.code == "NOT_SUBSCRIPTION_OWNER"


class TestApprovalCeiling:

    def test_price_over_limit(self):
        actor = ActorContext(user_id="a", role=Role.ADMIN, approval_limit=Decimal("1000"))

        with pytest.raises(AuthorizationError) as exc_info:
            check_approval_ceiling(actor, Decimal("1249.99"))

        assert exc_info.value.code == "APPROVAL_LIMIT_EXCEEDED"

    def test_price_at_limit(self):
        actor = ActorContext(user_id="a", role=Role.ADMIN, approval_limit=Decimal("1249.99"))

        check_approval_ceiling(actor, Decimal("1249.99"))

    def test_super_admin_ignores_limit(self):
        actor = ActorContext(user_id="s", role=Role.SUPER_ADMIN, approval_limit=Decimal("1"))

        check_approval_ceiling(actor, Decimal("9999"))
