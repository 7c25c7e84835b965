"""Tests for hit testing, drag/rotate sessions and template drops."""

import json

import pytest

from studioflow.core.errors import MalformedInputError
from studioflow.core.placement import (
    DragMode,
    DragSession,
    RotationSession,
    decode_drop_payload,
    drop_template,
    find_overlaps,
    hit_test,
    overlaps,
    rotation_angle,
    rotation_handle_position,
    snap_angle,
)
from studioflow.core.registry import ItemRegistry
from studioflow.models import Position, Viewport
from tests.fixtures.gear import mixer_template, monitor_template

SURFACE = (800.0, 600.0)


@pytest.fixture
def registry():
    return ItemRegistry()


@pytest.fixture
def monitor_id(registry):
    """Monitor (0.3 x 0.4 m) centered at (2, 1)."""
    return registry.add_instance(monitor_template(), 2.0, 1.0)


class TestHitTesting:
    """Test footprint hit tests and overlap detection."""

    def test_hit_inside_and_on_edge(self, registry, monitor_id):
        assert hit_test(registry.canvas_items(), Position(x=2.0, y=1.0)).id == monitor_id
        assert hit_test(registry.canvas_items(), Position(x=2.15, y=1.2)).id == monitor_id

    def test_miss(self, registry, monitor_id):
        assert hit_test(registry.canvas_items(), Position(x=2.2, y=1.0)) is None

    def test_hit_ignores_rotation(self, registry, monitor_id):
        """Test that the unrotated footprint is used for rotated gear."""
        registry.update_rotation(monitor_id, 90)
        assert hit_test(registry.canvas_items(), Position(x=2.15, y=1.2)).id == monitor_id
        assert hit_test(registry.canvas_items(), Position(x=2.19, y=1.0)) is None

    def test_overlap_is_strict(self, registry):
        """Test that touching footprints do not overlap."""
        mixer_id = registry.add_instance(mixer_template(), 0, 0)
        mixer = registry.get(mixer_id)
        assert not overlaps(Position(x=0.3, y=0), 0.3, 0.25, mixer)
        assert overlaps(Position(x=0.29, y=0), 0.3, 0.25, mixer)

    def test_find_overlaps_excludes(self, registry, monitor_id):
        found = find_overlaps(Position(x=2, y=1), 0.3, 0.4, registry.canvas_items())
        assert [i.id for i in found] == [monitor_id]
        assert find_overlaps(Position(x=2, y=1), 0.3, 0.4, registry.canvas_items(), exclude=monitor_id) == []


class TestRotationHelpers:
    """Test rotation angle math."""

    @pytest.mark.parametrize("pointer,expected", [
        ((0, -1), 0.0),
        ((1, 0), 90.0),
        ((0, 1), 180.0),
        ((-1, 0), -90.0),
    ])
    def test_rotation_angle(self, pointer, expected):
        """Test 0 degrees pointing up, clockwise positive."""
        angle = rotation_angle(Position(x=0, y=0), Position(x=pointer[0], y=pointer[1]))
        assert angle == pytest.approx(expected)

    def test_snap_angle(self):
        """Test 15-degree snapping with halves rounding up."""
        assert snap_angle(7.5) == 15
        assert snap_angle(7.4) == 0
        assert snap_angle(44) == 45
        assert snap_angle(10, increment=90) == 0

    def test_handle_position(self, registry, monitor_id):
        """Test that the handle sits above the instance, rotating with it."""
        handle = rotation_handle_position(registry.get(monitor_id))
        assert handle.x == pytest.approx(2.0)
        assert handle.y == pytest.approx(0.65)

        registry.update_rotation(monitor_id, 90)
        handle = rotation_handle_position(registry.get(monitor_id))
        assert handle.x == pytest.approx(2.35)
        assert handle.y == pytest.approx(1.0)


class TestDragSession:
    """Test the move/pan state machine."""

    def test_move_selected_item(self, registry, monitor_id):
        """Test that dragging an item moves it by delta / zoom."""
        session = DragSession(registry)
        viewport = Viewport.layout_default()

        mode = session.pointer_down(Position(x=100, y=50), Position(x=2, y=1))
        assert mode == DragMode.MOVING
        assert registry.selected_item().id == monitor_id

        returned = session.pointer_move(Position(x=150, y=100), viewport)
        assert returned == viewport
        assert registry.get(monitor_id).position.x == pytest.approx(3.0)
        assert registry.get(monitor_id).position.y == pytest.approx(2.0)

        session.pointer_up()
        assert session.mode == DragMode.IDLE

    def test_pan_on_empty_space(self, registry, monitor_id):
        """Test that dragging empty space pans and deselects."""
        registry.select(monitor_id)
        session = DragSession(registry)

        assert session.pointer_down(Position(x=0, y=0), Position(x=10, y=10)) == DragMode.PANNING
        assert registry.selected_item() is None

        viewport = session.pointer_move(Position(x=10, y=5), Viewport.layout_default())
        assert (viewport.offset_x, viewport.offset_y) == (10, 5)
        assert registry.get(monitor_id).position == Position(x=2, y=1)

    def test_leave_ends_session(self, registry, monitor_id):
        session = DragSession(registry)
        session.pointer_down(Position(x=100, y=50), Position(x=2, y=1))
        session.pointer_leave()
        viewport = Viewport.layout_default()
        session.pointer_move(Position(x=500, y=500), viewport)
        assert registry.get(monitor_id).position == Position(x=2, y=1)


class TestRotationSession:
    """Test the rotation sub-session."""

    def test_requires_selection(self, registry, monitor_id):
        session = RotationSession(registry)
        assert not session.pointer_down(Position(x=2, y=0.65))
        assert session.mode == DragMode.IDLE

    def test_rotate_with_snapping(self, registry, monitor_id):
        """Test rotating toward the pointer in 15-degree steps."""
        registry.select(monitor_id)
        session = RotationSession(registry)

        assert session.pointer_down(Position(x=2, y=0.65))
        assert session.mode == DragMode.ROTATING

        assert session.pointer_move(Position(x=3, y=1)) == pytest.approx(90)
        assert session.pointer_move(Position(x=2.1, y=0.0)) == pytest.approx(0)
        assert session.pointer_move(Position(x=1, y=1)) == pytest.approx(270)

        session.pointer_up()
        assert session.pointer_move(Position(x=3, y=1)) is None

    def test_miss_handle(self, registry, monitor_id):
        registry.select(monitor_id)
        assert not RotationSession(registry).pointer_down(Position(x=2, y=1))


class TestDrop:
    """Test drop-based instantiation."""

    def test_decode_variants(self):
        """Test JSON text, bytes and mapping payloads."""
        template = monitor_template()
        text = template.model_dump_json()
        assert decode_drop_payload(text) == template
        assert decode_drop_payload(text.encode("utf-8")) == template
        assert decode_drop_payload(json.loads(text)) == template
        assert decode_drop_payload(template) is template

    @pytest.mark.parametrize("payload", ["", "   ", "not json", "[1, 2]", {"id": "x"}, 42, b"\xff\xfe"])
    def test_malformed_payloads(self, payload):
        with pytest.raises(MalformedInputError):
            decode_drop_payload(payload)

    def test_drop_at_screen_point(self, registry):
        """Test that the instance lands at the world point under the drop."""
        result = drop_template(
            registry, monitor_template().model_dump_json(),
            Position(x=100, y=50), Viewport.layout_default(), SURFACE,
        )
        instance = registry.get(result.instance_id)
        assert instance.position.x == pytest.approx(2.0)
        assert instance.position.y == pytest.approx(1.0)
        assert not result.has_overlap

    def test_overlapping_drop_still_creates(self, registry, monitor_id):
        """Test that overlap is reported but does not block the drop."""
        result = drop_template(
            registry, monitor_template().model_dump_json(),
            Position(x=100, y=50), Viewport.layout_default(), SURFACE,
        )
        assert result.overlapping == [monitor_id]
        assert len(registry) == 2

    def test_malformed_drop_creates_nothing(self, registry):
        with pytest.raises(MalformedInputError):
            drop_template(registry, "{", Position(x=0, y=0), Viewport.layout_default(), SURFACE)
        assert len(registry) == 0
