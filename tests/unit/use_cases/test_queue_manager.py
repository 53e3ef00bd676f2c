"""Unit tests for QueueManager

Tests cover:
- Next position is numeric max + 1 (not lexicographic)
- Unknown device rejected
- Reorder compacts to 1..N and respects priority
- Manual reposition (move up, move down) keeps the dense invariant
- Reposition bounds, wrong state and unknown subscription
"""

import pytest

from src.domain.errors import ConflictError, NotFoundError, ValidationError
from src.domain.subscription import SubscriptionStatus


def positions(queue):
    return [s.queue_position for s in queue]


@pytest.mark.asyncio
class TestNextPosition:

    async def test_empty_queue_starts_at_one(self, components, add_device):
        # Arrange
        add_device("HW1")

        # Act
        position = await components.queue_manager.next_position("HW1")

        # Assert
        assert position == "1"

    async def test_numeric_maximum(self, components, add_device, add_subscription):
        """
        Given: Positions "9" and "10" exist
        When: next_position is computed
        Then: "11" (string max would give "9")
        """
        # Arrange
        add_device("HW1")
        add_subscription(position="9")
        add_subscription(position="10")

        # Act
        position = await components.queue_manager.next_position("HW1")

        # Assert
        assert position == "11"

    async def test_unknown_device(self, components):
        with pytest.raises(ValidationError) as exc_info:
            await components.queue_manager.next_position("NOPE")

        assert exc_info.value.code == "UNKNOWN_DEVICE"


@pytest.mark.asyncio
class TestReorder:

    async def test_compacts_gaps(self, components, add_device, add_subscription):
        # Arrange
        add_device("HW1")
        first = add_subscription(position="2")
        second = add_subscription(position="5")
        third = add_subscription(position="7")

        # Act
        queue = await components.queue_manager.reorder("HW1")

        # Assert
        assert [s.id for s in queue] == [first.id, second.id, third.id]
        assert positions(queue) == ["1", "2", "3"]

    async def test_priority_first(self, components, add_device, add_subscription):
        # Arrange
        add_device("HW1")
        normal = add_subscription(position="1")
        urgent = add_subscription(position="2", priority=10, status=SubscriptionStatus.QUEUED)

        # Act
        queue = await components.queue_manager.reorder("HW1")

        # Assert
        assert [s.id for s in queue] == [urgent.id, normal.id]
        assert urgent.queue_position == "1"
        assert normal.queue_position == "2"

    async def test_only_changed_rows_written(self, components, repos, add_device, add_subscription):
        # Arrange
        add_device("HW1")
        add_subscription(position="1")
        add_subscription(position="2")

        # Act
        await components.queue_manager.reorder("HW1")

        # Assert
        repos.subscription_repo.update.assert_not_called()

    async def test_other_devices_untouched(self, components, add_device, add_subscription):
        # Arrange
        add_device("HW1")
        add_device("HW2")
        add_subscription(position="3", hardware_id="HW1")
        other = add_subscription(position="4", hardware_id="HW2")

        # Act
        await components.queue_manager.reorder("HW1")

        # Assert
        assert other.queue_position == "4"


@pytest.mark.asyncio
class TestReposition:

    async def test_move_last_to_first(self, components, add_device, add_subscription):
        """
        Given: Three PENDING subscriptions at 1, 2, 3
        When: The one at 3 is moved to 1
        Then: Order is [pos3, pos1, pos2] at positions 1, 2, 3
        """
        # Arrange
        add_device("HW1")
        s1 = add_subscription(position="1")
        s2 = add_subscription(position="2")
        s3 = add_subscription(position="3")

        # Act
        queue = await components.queue_manager.reposition(s3.id, 1)

        # Assert
        assert [s.id for s in queue] == [s3.id, s1.id, s2.id]
        assert positions(queue) == ["1", "2", "3"]

    async def test_move_first_to_last(self, components, add_device, add_subscription):
        # Arrange
        add_device("HW1")
        s1 = add_subscription(position="1")
        s2 = add_subscription(position="2")
        s3 = add_subscription(position="3")

        # Act
        queue = await components.queue_manager.reposition(s1.id, 3)

        # Assert
        assert [s.id for s in queue] == [s2.id, s3.id, s1.id]
        assert positions(queue) == ["1", "2", "3"]

    async def test_same_position_is_noop(self, components, add_device, add_subscription):
        # Arrange
        add_device("HW1")
        s1 = add_subscription(position="1")
        s2 = add_subscription(position="2")

        # Act
        queue = await components.queue_manager.reposition(s2.id, 2)

        # Assert
        assert [s.id for s in queue] == [s1.id, s2.id]

    @pytest.mark.parametrize("new_position", [0, 4, -1])
    async def test_out_of_bounds(self, components, add_device, add_subscription, new_position):
        # Arrange
        add_device("HW1")
        s1 = add_subscription(position="1")
        add_subscription(position="2")

        # Act / Assert
        with pytest.raises(ValidationError) as exc_info:
            await components.queue_manager.reposition(s1.id, new_position)

        assert exc_info.value.code == "INVALID_QUEUE_POSITION"
        assert s1.queue_position == "1"

    async def test_active_subscription_cannot_move(self, components, add_device, add_subscription):
        # Arrange
        add_device("HW1")
        active = add_subscription(status=SubscriptionStatus.ACTIVE)

        # Act / Assert
        with pytest.raises(ConflictError) as exc_info:
            await components.queue_manager.reposition(active.id, 1)

        assert exc_info.value.code == "NOT_REPOSITIONABLE"

    async def test_unknown_subscription(self, components):
        with pytest.raises(NotFoundError):
            await components.queue_manager.reposition("missing", 1)
