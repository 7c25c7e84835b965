"""Placement & Drag Engine for the physical layout view.

Covers the pointer-driven editing of the plan:

- hit testing against instance footprints
- move/pan drag sessions and the rotation sub-session
- drop-based instantiation with overlap detection

Hit testing uses the unrotated footprint box centered on the instance
position, even for rotated instances. Rotation is cosmetic here.

Drag and rotation sessions are transient UI state. They are never persisted
and always end on pointer-up or pointer-leave.
"""

import json
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..config.settings import get_setting
from ..models.equipment import EquipmentInstance, EquipmentTemplate
from ..models.geometry import Position
from ..models.viewport import Viewport
from .errors import MalformedInputError
from .registry import ItemRegistry
from .transform import PixelSize, pan, screen_to_world

logger = logging.getLogger(__name__)


# ============================================================================
# Geometry queries
# ============================================================================

def hit_test(items: Iterable[EquipmentInstance], world_point: Position) -> Optional[EquipmentInstance]:
    """First instance whose footprint contains the point (edges inclusive)."""
    for item in items:
        if item.bounding_box().contains(world_point):
            return item
    return None


def overlaps(
    a_position: Position,
    a_width: float,
    a_height: float,
    b: EquipmentInstance,
) -> bool:
    """Strict bounding-box overlap between a footprint and an instance."""
    dx = abs(a_position.x - b.position.x)
    dy = abs(a_position.y - b.position.y)
    return (
        dx < (a_width + b.dimensions.width) / 2
        and dy < (a_height + b.dimensions.height) / 2
    )


def find_overlaps(
    position: Position,
    width: float,
    height: float,
    items: Iterable[EquipmentInstance],
    exclude: Optional[str] = None,
) -> List[EquipmentInstance]:
    """Every instance the given footprint would overlap."""
    return [
        item for item in items
        if item.id != exclude and overlaps(position, width, height, item)
    ]


# ============================================================================
# Rotation helpers
# ============================================================================

def rotation_angle(center: Position, pointer: Position) -> float:
    """Angle from the instance center to the pointer, 0 pointing up, clockwise positive."""
    dx = pointer.x - center.x
    dy = pointer.y - center.y
    return math.degrees(math.atan2(dx, -dy))


def snap_angle(degrees: float, increment: Optional[float] = None) -> float:
    """Snap to the nearest increment, halves rounding up."""
    step = increment if increment is not None else get_setting('rotation_snap')
    return math.floor(degrees / step + 0.5) * step


def rotation_handle_position(instance: EquipmentInstance) -> Position:
    """Where the rotation handle of an instance is drawn (world coordinates)."""
    distance = (
        max(instance.dimensions.width, instance.dimensions.height) / 2
        + get_setting('rotation_handle_offset')
    )
    radians = math.radians(instance.rotation)
    return Position(
        x=instance.position.x + distance * math.sin(radians),
        y=instance.position.y - distance * math.cos(radians),
    )


def hits_rotation_handle(instance: EquipmentInstance, world_point: Position) -> bool:
    handle = rotation_handle_position(instance)
    return handle.distance_to(world_point) <= get_setting('rotation_handle_radius')


# ============================================================================
# Sessions
# ============================================================================

class DragMode(Enum):
    """States of the pointer session state machine."""
    IDLE = "idle"
    MOVING = "moving"
    PANNING = "panning"
    ROTATING = "rotating"


class DragSession:
    """Move/pan session of the layout view.

    IDLE --down on item--> MOVING --up/leave--> IDLE
    IDLE --down on empty--> PANNING --up/leave--> IDLE
    """

    def __init__(self, registry: ItemRegistry):
        self.registry = registry
        self.mode = DragMode.IDLE
        self.instance_id: Optional[str] = None
        self._last_screen: Optional[Position] = None

    @property
    def active(self) -> bool:
        return self.mode != DragMode.IDLE

    def pointer_down(self, screen_point: Position, world_point: Position) -> DragMode:
        hit = hit_test(self.registry.canvas_items(), world_point)
        if hit is not None:
            self.registry.select(hit.id)
            self.instance_id = hit.id
            self.mode = DragMode.MOVING
        else:
            self.registry.select(None)
            self.instance_id = None
            self.mode = DragMode.PANNING

        self._last_screen = screen_point
        logger.debug(f"Drag session started: {self.mode.value}")
        return self.mode

    def pointer_move(self, screen_point: Position, viewport: Viewport) -> Viewport:
        """Apply one pointer move.

        Returns:
            The viewport to use from now on (panned when PANNING, unchanged
            otherwise)
        """
        if not self.active or self._last_screen is None:
            return viewport

        dx = screen_point.x - self._last_screen.x
        dy = screen_point.y - self._last_screen.y
        self._last_screen = screen_point

        if self.mode == DragMode.MOVING and self.instance_id is not None:
            item = self.registry.find(self.instance_id)
            if item is None:
                self.end()
                return viewport
            self.registry.update_position(
                item.id,
                item.position.x + dx / viewport.zoom,
                item.position.y + dy / viewport.zoom,
            )
            return viewport

        if self.mode == DragMode.PANNING:
            return pan(viewport, dx, dy)
        return viewport

    def pointer_up(self) -> None:
        self.end()

    def pointer_leave(self) -> None:
        self.end()

    def end(self) -> None:
        self.mode = DragMode.IDLE
        self.instance_id = None
        self._last_screen = None


class RotationSession:
    """Rotation sub-session, reachable only while an instance is selected."""

    def __init__(self, registry: ItemRegistry):
        self.registry = registry
        self.instance_id: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.instance_id is not None

    @property
    def mode(self) -> DragMode:
        return DragMode.ROTATING if self.active else DragMode.IDLE

    def pointer_down(self, world_point: Position) -> bool:
        """Start rotating if the pointer is on the selected instance's handle."""
        selected = self.registry.selected_item()
        if selected is None or not selected.is_on_canvas:
            return False
        if not hits_rotation_handle(selected, world_point):
            return False

        self.instance_id = selected.id
        logger.debug(f"Rotation session started for {selected.id}")
        return True

    def pointer_move(self, world_point: Position) -> Optional[float]:
        """Rotate toward the pointer; returns the stored angle."""
        if not self.active:
            return None
        item = self.registry.find(self.instance_id)
        if item is None:
            self.end()
            return None

        angle = snap_angle(rotation_angle(item.position, world_point))
        self.registry.update_rotation(item.id, angle)
        return self.registry.get(item.id).rotation

    def pointer_up(self) -> None:
        self.end()

    def pointer_leave(self) -> None:
        self.end()

    def end(self) -> None:
        self.instance_id = None


# ============================================================================
# Drop-based instantiation
# ============================================================================

@dataclass
class DropResult:
    """Outcome of dropping a template on the plan."""
    instance_id: str
    position: Position
    overlapping: List[str] = field(default_factory=list)

    @property
    def has_overlap(self) -> bool:
        return bool(self.overlapping)


def decode_drop_payload(payload: Any) -> EquipmentTemplate:
    """Decode a dragged template from JSON text, bytes or a mapping.

    Raises:
        MalformedInputError: If the payload is empty, not JSON, or not a
            valid template
    """
    if isinstance(payload, EquipmentTemplate):
        return payload

    data = payload
    if isinstance(payload, (bytes, bytearray)):
        try:
            data = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedInputError(f"Drop payload is not UTF-8: {e}") from e

    if isinstance(data, str):
        if not data.strip():
            raise MalformedInputError("Drop payload is empty")
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise MalformedInputError(f"Drop payload is not JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise MalformedInputError(
            f"Drop payload must be an object, got {type(data).__name__}"
        )

    try:
        return EquipmentTemplate.model_validate(data)
    except PydanticValidationError as e:
        raise MalformedInputError(
            f"Drop payload is not a valid template: {e.error_count()} error(s)"
        ) from e


def drop_template(
    registry: ItemRegistry,
    payload: Any,
    screen_point: Position,
    viewport: Viewport,
    pixel_size: PixelSize,
) -> DropResult:
    """Instantiate a dropped template at the drop point.

    The instance is created whether or not it overlaps existing gear; the
    overlap is reported in the result for the caller to surface.

    Raises:
        MalformedInputError: If the payload cannot be decoded (nothing is
            created)
    """
    template = decode_drop_payload(payload)
    world = screen_to_world(screen_point, viewport, pixel_size)

    overlapping = find_overlaps(
        world,
        template.dimensions.width,
        template.dimensions.height,
        registry.canvas_items(),
    )
    instance_id = registry.add_instance(template, world.x, world.y)

    if overlapping:
        logger.debug(
            f"Dropped {template.name} overlaps {', '.join(i.name for i in overlapping)}"
        )
    return DropResult(
        instance_id=instance_id,
        position=world,
        overlapping=[item.id for item in overlapping],
    )


__all__ = [
    "hit_test",
    "overlaps",
    "find_overlaps",
    "rotation_angle",
    "snap_angle",
    "rotation_handle_position",
    "hits_rotation_handle",
    "DragMode",
    "DragSession",
    "RotationSession",
    "DropResult",
    "decode_drop_payload",
    "drop_template",
]
