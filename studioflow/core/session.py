"""Viewport/Session Controllers - pointer input routing for the two views.

Each controller owns the transient session state of one drawing surface
and translates raw pointer/wheel/drop events into operations on a
StudioProject:

- LayoutCanvasController: the physical layout plan (move, pan, rotate,
  wheel zoom, template drops)
- ConnectionCanvasController: the connection graph (drag a cable from an
  output port to an input port, move node cards, pan, wheel zoom)

All sessions end on pointer-up and pointer-leave. Nothing here is
persisted.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..models.geometry import Position
from ..models.port_spec import PortDirection
from .placement import DragMode, DragSession, RotationSession
from .project import StudioProject
from .transform import PixelSize, pan, screen_to_world, zoom_by_wheel

logger = logging.getLogger(__name__)


class LayoutCanvasController:
    """Routes layout-view input to the drag and rotation sessions."""

    def __init__(self, project: StudioProject, pixel_size: PixelSize):
        self.project = project
        self.pixel_size = pixel_size
        self.drag = DragSession(project.registry)
        self.rotation = RotationSession(project.registry)

    @property
    def mode(self) -> DragMode:
        if self.rotation.active:
            return DragMode.ROTATING
        return self.drag.mode

    def resize(self, pixel_size: PixelSize) -> None:
        self.pixel_size = pixel_size

    def to_world(self, screen_point: Position) -> Position:
        return screen_to_world(screen_point, self.project.layout_viewport, self.pixel_size)

    def pointer_down(self, screen_point: Position) -> DragMode:
        """Start rotating on the selected item's handle, else move or pan."""
        world = self.to_world(screen_point)
        if self.rotation.pointer_down(world):
            return DragMode.ROTATING
        return self.drag.pointer_down(screen_point, world)

    def pointer_move(self, screen_point: Position) -> None:
        if self.rotation.active:
            self.rotation.pointer_move(self.to_world(screen_point))
            return
        if self.drag.active:
            viewport = self.drag.pointer_move(screen_point, self.project.layout_viewport)
            self.project.set_layout_viewport(viewport)

    def pointer_up(self) -> None:
        self.rotation.pointer_up()
        self.drag.pointer_up()

    def pointer_leave(self) -> None:
        self.rotation.pointer_leave()
        self.drag.pointer_leave()

    def wheel(self, screen_point: Position, delta_y: float) -> None:
        self.project.set_layout_viewport(
            zoom_by_wheel(self.project.layout_viewport, screen_point, delta_y)
        )

    def drop(self, payload: Any, screen_point: Position) -> Dict[str, Any]:
        """Drop a dragged catalog template; returns the project envelope."""
        return self.project.drop_template(payload, screen_point, self.pixel_size)


class GraphDragMode(Enum):
    """States of the connection-view pointer session."""
    IDLE = "idle"
    CONNECTING = "connecting"
    MOVING_NODE = "moving_node"
    PANNING = "panning"


class ConnectionCanvasController:
    """Routes connection-view input: cable drags, node moves, pan and zoom.

    IDLE --down on output port--> CONNECTING --up on input port--> connect
    IDLE --down on node--> MOVING_NODE
    IDLE --down elsewhere--> PANNING
    """

    def __init__(self, project: StudioProject, pixel_size: PixelSize):
        self.project = project
        self.pixel_size = pixel_size
        self.mode = GraphDragMode.IDLE
        self.source: Optional[Tuple[str, str]] = None
        self.node_id: Optional[str] = None
        self.pointer_world: Optional[Position] = None
        self._last_screen: Optional[Position] = None

    def resize(self, pixel_size: PixelSize) -> None:
        self.pixel_size = pixel_size

    def to_world(self, screen_point: Position) -> Position:
        return screen_to_world(screen_point, self.project.connection_viewport, self.pixel_size)

    @property
    def pending_cable(self) -> Optional[Tuple[Position, Position]]:
        """(source anchor, pointer) while a cable is being dragged, for preview drawing."""
        if self.mode != GraphDragMode.CONNECTING or self.source is None:
            return None
        anchor = self.project.graph.port_anchor(*self.source)
        if anchor is None or self.pointer_world is None:
            return None
        return anchor, self.pointer_world

    def pointer_down(self, screen_point: Position) -> GraphDragMode:
        graph = self.project.graph
        graph.ensure_all_positions()
        world = self.to_world(screen_point)

        port_hit = graph.hit_test_port(world, direction=PortDirection.OUTPUT)
        if port_hit is not None:
            instance, port = port_hit
            self.source = (instance.id, port.id)
            self.mode = GraphDragMode.CONNECTING
        else:
            node = graph.hit_test_node(world)
            if node is not None:
                self.node_id = node.id
                self.mode = GraphDragMode.MOVING_NODE
            else:
                self.mode = GraphDragMode.PANNING

        self.pointer_world = world
        self._last_screen = screen_point
        logger.debug(f"Connection view session started: {self.mode.value}")
        return self.mode

    def pointer_move(self, screen_point: Position) -> None:
        if self.mode == GraphDragMode.IDLE or self._last_screen is None:
            return

        viewport = self.project.connection_viewport
        dx = screen_point.x - self._last_screen.x
        dy = screen_point.y - self._last_screen.y
        self._last_screen = screen_point

        if self.mode == GraphDragMode.CONNECTING:
            self.pointer_world = self.to_world(screen_point)
        elif self.mode == GraphDragMode.MOVING_NODE and self.node_id is not None:
            position = self.project.graph.node_position(self.node_id)
            if position is None:
                self.end()
                return
            self.project.graph.update_node_position(
                self.node_id,
                position.x + dx / viewport.zoom,
                position.y + dy / viewport.zoom,
            )
        elif self.mode == GraphDragMode.PANNING:
            self.project.set_connection_viewport(pan(viewport, dx, dy))

    def pointer_up(self, screen_point: Optional[Position] = None) -> Optional[Dict[str, Any]]:
        """End the session; a cable drag released on an input port connects.

        Returns:
            The ``connect`` envelope when a connection was attempted, else None
        """
        result = None
        if self.mode == GraphDragMode.CONNECTING and self.source is not None and screen_point is not None:
            hit = self.project.graph.hit_test_port(
                self.to_world(screen_point), direction=PortDirection.INPUT
            )
            if hit is not None:
                instance, port = hit
                result = self.project.connect(self.source[0], self.source[1], instance.id, port.id)
        self.end()
        return result

    def pointer_leave(self) -> None:
        self.end()

    def wheel(self, screen_point: Position, delta_y: float) -> None:
        self.project.set_connection_viewport(
            zoom_by_wheel(self.project.connection_viewport, screen_point, delta_y)
        )

    def end(self) -> None:
        self.mode = GraphDragMode.IDLE
        self.source = None
        self.node_id = None
        self.pointer_world = None
        self._last_screen = None


__all__ = [
    "LayoutCanvasController",
    "GraphDragMode",
    "ConnectionCanvasController",
]
