"""Coordinate transform between screen space and world space.

Screen points are pixels relative to the top-left corner of the drawing
surface; world points are meters. A viewport maps one onto the other:

    screen = world * zoom + offset
    world  = (screen - offset) / zoom

Every function here is pure: it returns new values and the caller decides
whether to keep them.
"""

import logging
from typing import Tuple

from ..config.settings import get_setting
from ..models.geometry import Position, WorldRect
from ..models.viewport import Viewport

logger = logging.getLogger(__name__)

PixelSize = Tuple[float, float]


def screen_to_world(screen_point: Position, viewport: Viewport, pixel_size: PixelSize) -> Position:
    """Convert a screen point into world coordinates.

    Args:
        screen_point: Pointer position in pixels
        viewport: Current viewport
        pixel_size: (width, height) of the drawing surface in pixels; the
            mapping does not depend on it, callers pass it for symmetry
            with visible_world_rect

    Returns:
        World position under the pointer
    """
    return Position(
        x=(screen_point.x - viewport.offset_x) / viewport.zoom,
        y=(screen_point.y - viewport.offset_y) / viewport.zoom,
    )


def world_to_screen(world_point: Position, viewport: Viewport, pixel_size: PixelSize) -> Position:
    """Convert a world point into screen pixels (inverse of screen_to_world)."""
    return Position(
        x=world_point.x * viewport.zoom + viewport.offset_x,
        y=world_point.y * viewport.zoom + viewport.offset_y,
    )


def visible_world_rect(viewport: Viewport, pixel_size: PixelSize) -> WorldRect:
    """World rectangle currently visible through the viewport."""
    width, height = pixel_size
    return WorldRect(
        x=-viewport.offset_x / viewport.zoom,
        y=-viewport.offset_y / viewport.zoom,
        width=width / viewport.zoom,
        height=height / viewport.zoom,
    )


def clamp_zoom(zoom: float) -> float:
    return max(get_setting('min_zoom'), min(get_setting('max_zoom'), zoom))


def zoom_at(viewport: Viewport, pointer: Position, new_zoom: float) -> Viewport:
    """Change zoom while keeping the world point under the pointer fixed.

    Args:
        viewport: Current viewport
        pointer: Pointer position in screen pixels (the zoom anchor)
        new_zoom: Requested zoom; clamped to the configured range

    Returns:
        New viewport
    """
    zoom = clamp_zoom(new_zoom)
    ratio = zoom / viewport.zoom
    return Viewport(
        offset_x=pointer.x - (pointer.x - viewport.offset_x) * ratio,
        offset_y=pointer.y - (pointer.y - viewport.offset_y) * ratio,
        zoom=zoom,
    )


def zoom_by_wheel(viewport: Viewport, pointer: Position, delta_y: float) -> Viewport:
    """Apply one mouse-wheel step: scrolling down zooms out, up zooms in."""
    factor = get_setting('wheel_zoom_out') if delta_y > 0 else get_setting('wheel_zoom_in')
    return zoom_at(viewport, pointer, viewport.zoom * factor)


def pan(viewport: Viewport, dx: float, dy: float) -> Viewport:
    """Translate the viewport offset by a screen-pixel delta."""
    return viewport.model_copy(
        update={
            "offset_x": viewport.offset_x + dx,
            "offset_y": viewport.offset_y + dy,
        }
    )


__all__ = [
    "PixelSize",
    "screen_to_world",
    "world_to_screen",
    "visible_world_rect",
    "clamp_zoom",
    "zoom_at",
    "zoom_by_wheel",
    "pan",
]
