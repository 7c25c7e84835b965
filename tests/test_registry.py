"""
Tests for ItemRegistry - Equipment Instances Placed in a Project

Tests cover:
1. Creation from templates and lookup
2. Position, rotation, name and canvas visibility updates
3. Single selection
4. Lifecycle hooks
5. Snapshot and restore
"""

import pytest

from studioflow.core.errors import NotFoundError, ValidationError
from studioflow.core.registry import ItemRegistry, RegistryHook
from studioflow.models import Position
from tests.fixtures.gear import mixer_template, monitor_template


# ============================================================================
# Test Fixtures
# ============================================================================

@pytest.fixture
def registry():
    return ItemRegistry()


@pytest.fixture
def tracking_hook():
    """Hook that records every lifecycle event."""
    class TrackingHook(RegistryHook):
        def __init__(self):
            self.events = []

        def on_added(self, instance):
            self.events.append(("added", instance.id))

        def on_moved(self, instance, old_position):
            self.events.append(("moved", instance.id, old_position.to_list()))

        def on_removing(self, instance):
            self.events.append(("removing", instance.id))

        def on_removed(self, instance):
            self.events.append(("removed", instance.id))

    return TrackingHook()


# ============================================================================
# Tests
# ============================================================================

class TestCreation:
    """Test adding and looking up instances."""

    def test_add_instance(self, registry):
        """Test that a new instance is registered on the canvas."""
        instance_id = registry.add_instance(monitor_template(), 2.0, 1.0)
        instance = registry.get(instance_id)
        assert instance.position == Position(x=2.0, y=1.0)
        assert instance_id in registry
        assert len(registry) == 1
        assert registry.canvas_items() == [instance]

    def test_add_off_canvas(self, registry):
        """Test creating an instance that is not on the plan."""
        instance_id = registry.add_instance(monitor_template(), 0, 0, on_canvas=False)
        assert registry.canvas_items() == []
        assert [i.id for i in registry.all_items()] == [instance_id]

    def test_get_unknown_raises(self, registry):
        with pytest.raises(NotFoundError, match="instance nope not found"):
            registry.get("nope")
        assert registry.find("nope") is None

    def test_insert_duplicate_raises(self, registry):
        instance_id = registry.add_instance(monitor_template(), 0, 0)
        with pytest.raises(ValidationError, match="already exists"):
            registry.insert(registry.get(instance_id).model_copy())


class TestMutations:
    """Test in-place updates."""

    def test_update_position(self, registry):
        instance_id = registry.add_instance(monitor_template(), 0, 0)
        registry.update_position(instance_id, 3.5, -1.0)
        assert registry.get(instance_id).position == Position(x=3.5, y=-1.0)

    def test_update_rotation_wraps(self, registry):
        """Test that stored rotations are wrapped."""
        instance_id = registry.add_instance(monitor_template(), 0, 0)
        registry.update_rotation(instance_id, 370)
        assert registry.get(instance_id).rotation == pytest.approx(10)
        registry.update_rotation(instance_id, -15)
        assert registry.get(instance_id).rotation == pytest.approx(345)

    @pytest.mark.parametrize("x, y", [(float("nan"), 0.0), (0.0, float("inf"))])
    def test_non_finite_position_rejected(self, registry, tracking_hook, x, y):
        """Test that a bad coordinate leaves the instance where it was."""
        instance_id = registry.add_instance(monitor_template(), 1.0, 2.0)
        registry.add_hook(tracking_hook)
        with pytest.raises(ValidationError, match="Invalid position"):
            registry.update_position(instance_id, x, y)
        assert registry.get(instance_id).position == Position(x=1.0, y=2.0)
        assert tracking_hook.events == []

    def test_non_finite_rotation_rejected(self, registry):
        instance_id = registry.add_instance(monitor_template(), 0, 0)
        registry.update_rotation(instance_id, 90)
        with pytest.raises(ValidationError, match="Invalid rotation"):
            registry.update_rotation(instance_id, float("nan"))
        assert registry.get(instance_id).rotation == pytest.approx(90)

    def test_add_at_non_finite_position_rejected(self, registry):
        with pytest.raises(ValidationError, match="Invalid position"):
            registry.add_instance(monitor_template(), float("nan"), 0)
        assert len(registry) == 0

    def test_rename_strips_whitespace(self, registry):
        instance_id = registry.add_instance(monitor_template(), 0, 0)
        registry.rename(instance_id, "  Left Monitor ")
        assert registry.get(instance_id).name == "Left Monitor"

    def test_rename_blank_rejected(self, registry):
        """Test that an empty name is rejected and the old name kept."""
        instance_id = registry.add_instance(monitor_template(), 0, 0)
        with pytest.raises(ValidationError, match="name cannot be empty"):
            registry.rename(instance_id, "   ")
        assert registry.get(instance_id).name == "Genelec 8030C"

    def test_set_and_toggle_on_canvas(self, registry):
        instance_id = registry.add_instance(monitor_template(), 0, 0)
        registry.set_on_canvas(instance_id, False)
        assert not registry.get(instance_id).is_on_canvas
        registry.toggle_on_canvas(instance_id)
        assert registry.get(instance_id).is_on_canvas


class TestSelection:
    """Test that at most one instance is selected."""

    def test_select_replaces_previous(self, registry):
        a = registry.add_instance(monitor_template(), 0, 0)
        b = registry.add_instance(mixer_template(), 5, 5)

        registry.select(a)
        registry.select(b)

        assert registry.selected_item().id == b
        assert not registry.get(a).selected

    def test_select_none_clears(self, registry):
        a = registry.add_instance(monitor_template(), 0, 0)
        registry.select(a)
        registry.select(None)
        assert registry.selected_item() is None

    def test_select_unknown_keeps_selection(self, registry):
        """Test that a failed select changes nothing."""
        a = registry.add_instance(monitor_template(), 0, 0)
        registry.select(a)
        with pytest.raises(NotFoundError):
            registry.select("ghost")
        assert registry.selected_item().id == a


class TestHooks:
    """Test lifecycle hooks."""

    def test_add_move_remove_events(self, registry, tracking_hook):
        """Test that every lifecycle event reaches the hook in order."""
        registry.add_hook(tracking_hook)
        instance_id = registry.add_instance(monitor_template(), 1, 2)
        registry.update_position(instance_id, 4, 5)
        registry.remove(instance_id)

        assert tracking_hook.events == [
            ("added", instance_id),
            ("moved", instance_id, [1.0, 2.0]),
            ("removing", instance_id),
            ("removed", instance_id),
        ]

    def test_on_removing_sees_registered_instance(self, registry):
        """Test that on_removing runs before the instance is gone."""
        seen = []

        class OrderHook(RegistryHook):
            def on_removing(self, instance):
                seen.append(registry.exists(instance.id))

            def on_removed(self, instance):
                seen.append(registry.exists(instance.id))

        registry.add_hook(OrderHook())
        registry.remove(registry.add_instance(monitor_template(), 0, 0))
        assert seen == [True, False]

    def test_remove_hook(self, registry, tracking_hook):
        registry.add_hook(tracking_hook)
        registry.remove_hook(tracking_hook)
        registry.add_instance(monitor_template(), 0, 0)
        assert tracking_hook.events == []


class TestSnapshots:
    """Test snapshot and restore."""

    def test_restore_undoes_changes(self, registry):
        """Test that restore brings back the exact earlier state."""
        instance_id = registry.add_instance(monitor_template(), 1, 1)
        snapshot = registry.create_snapshot()

        registry.update_position(instance_id, 9, 9)
        registry.add_instance(mixer_template(), 0, 0)
        registry.restore_snapshot(snapshot)

        assert len(registry) == 1
        assert registry.get(instance_id).position == Position(x=1, y=1)

    def test_snapshot_is_isolated(self, registry):
        """Test that later edits do not leak into a snapshot."""
        instance_id = registry.add_instance(monitor_template(), 1, 1)
        snapshot = registry.create_snapshot()
        registry.rename(instance_id, "Changed")
        assert snapshot.instances[instance_id].name == "Genelec 8030C"
