"""
Studio Project - State Container and Operation Facade

A StudioProject wires the components of one studio plan together:

- ItemRegistry: the placed equipment instances
- RackAllocator: rack slot bookkeeping (registry hook)
- ConnectionGraph: cables and the connection-view node layout (registry hook)
- Two independent viewports: the physical layout and the connection graph
- Notifier: the user-facing message log

Components raise typed StudioErrors; the facade methods here catch them and
return response envelopes, emitting a warning notification for every
rejected operation. Operations that touch more than one component run
inside ``_atomic()`` so a failure half-way restores the project exactly.

Usage:
    project = StudioProject()
    result = project.add_instance(monitor_template, 2.0, 1.0)
    if is_success(result):
        monitor_id = result["data"]["id"]
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional

from ..config.settings import is_enabled
from ..models.equipment import EquipmentTemplate
from ..models.geometry import Position
from ..models.viewport import Viewport
from ..utils.response import error_from_exception, success_response
from .bom import BillOfMaterials, build_bom
from .connection_graph import ConnectionGraph
from .errors import StudioError
from .notifications import Notifier
from .placement import drop_template
from .rack_allocator import RackAllocator
from .registry import ItemRegistry
from .transform import PixelSize

logger = logging.getLogger(__name__)


class StudioProject:
    """All state of one studio plan plus the envelope-returning operations on it."""

    def __init__(
        self,
        layout_viewport: Optional[Viewport] = None,
        connection_viewport: Optional[Viewport] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.registry = ItemRegistry()
        self.racks = RackAllocator(self.registry)
        self.graph = ConnectionGraph(self.registry)
        self.layout_viewport = layout_viewport or Viewport.layout_default()
        self.connection_viewport = connection_viewport or Viewport.connection_default()
        self.notifier = notifier or Notifier()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        """Restore registry and graph if the block raises."""
        registry_snapshot = self.registry.create_snapshot()
        graph_snapshot = self.graph.create_snapshot()
        try:
            yield
        except Exception:
            self.registry.restore_snapshot(registry_snapshot)
            self.graph.restore_snapshot(graph_snapshot)
            raise

    def _run(self, action: str, operation: Callable[[], Any]) -> Dict[str, Any]:
        """Run an operation, turning StudioErrors into error envelopes."""
        try:
            data = operation()
        except StudioError as e:
            logger.warning(f"{action} rejected: {e.message}")
            self.notifier.warning(f"{action} failed: {e.message}")
            return error_from_exception(e)
        return success_response(data)

    # ------------------------------------------------------------------
    # Instances
    # ------------------------------------------------------------------

    def add_instance(
        self,
        template: EquipmentTemplate,
        x: float,
        y: float,
        on_canvas: bool = True,
    ) -> Dict[str, Any]:
        def operation():
            instance_id = self.registry.add_instance(template, x, y, on_canvas=on_canvas)
            return {"id": instance_id}
        return self._run("Add equipment", operation)

    def drop_template(
        self,
        payload: Any,
        screen_point: Position,
        pixel_size: PixelSize,
    ) -> Dict[str, Any]:
        """Instantiate a dragged template at a screen point of the layout view.

        Overlaps never block the drop; they come back as envelope warnings
        (and a warning notification when ``warn_on_overlap`` is enabled).
        """
        try:
            result = drop_template(
                self.registry, payload, screen_point, self.layout_viewport, pixel_size
            )
        except StudioError as e:
            logger.warning(f"Drop rejected: {e.message}")
            self.notifier.warning(f"Drop failed: {e.message}")
            return error_from_exception(e)

        instance = self.registry.get(result.instance_id)
        warnings = []
        if result.has_overlap:
            names = ", ".join(self.registry.get(i).name for i in result.overlapping)
            message = f"Overlap detected: {instance.name} overlaps {names}"
            warnings.append(message)
            if is_enabled('warn_on_overlap'):
                self.notifier.warning(message)

        self.notifier.info(f"Added {instance.name}")
        return success_response(
            {
                "id": instance.id,
                "position": result.position.to_list(),
                "overlapping": result.overlapping,
            },
            warnings=warnings,
        )

    def move_instance(self, instance_id: str, x: float, y: float) -> Dict[str, Any]:
        def operation():
            self.registry.update_position(instance_id, x, y)
            return {"id": instance_id, "position": [x, y]}
        return self._run("Move", operation)

    def rotate_instance(self, instance_id: str, degrees: float) -> Dict[str, Any]:
        def operation():
            self.registry.update_rotation(instance_id, degrees)
            return {"id": instance_id, "rotation": self.registry.get(instance_id).rotation}
        return self._run("Rotate", operation)

    def rename_instance(self, instance_id: str, name: str) -> Dict[str, Any]:
        def operation():
            self.registry.rename(instance_id, name)
            return {"id": instance_id, "name": self.registry.get(instance_id).name}
        return self._run("Rename", operation)

    def select(self, instance_id: Optional[str]) -> Dict[str, Any]:
        def operation():
            self.registry.select(instance_id)
            return {"selected": instance_id}
        return self._run("Select", operation)

    def set_on_canvas(self, instance_id: str, on_canvas: bool) -> Dict[str, Any]:
        def operation():
            self.registry.set_on_canvas(instance_id, on_canvas)
            return {"id": instance_id, "is_on_canvas": on_canvas}
        return self._run("Show/hide", operation)

    def toggle_on_canvas(self, instance_id: str) -> Dict[str, Any]:
        def operation():
            self.registry.toggle_on_canvas(instance_id)
            return {"id": instance_id, "is_on_canvas": self.registry.get(instance_id).is_on_canvas}
        return self._run("Show/hide", operation)

    def remove_instance(self, instance_id: str) -> Dict[str, Any]:
        """Remove an instance with its cables; mounted gear leaves its rack."""
        def operation():
            removed_cables = [c.id for c in self.graph.connections_for(instance_id)]
            with self._atomic():
                instance = self.registry.remove(instance_id)
            self.notifier.info(f"Removed {instance.name}")
            return {"id": instance_id, "removed_connections": removed_cables}
        return self._run("Remove", operation)

    # ------------------------------------------------------------------
    # Racks
    # ------------------------------------------------------------------

    def mount(self, item_id: str, rack_id: str, slot: int) -> Dict[str, Any]:
        def operation():
            with self._atomic():
                self.racks.mount(item_id, rack_id, slot)
            item = self.registry.get(item_id)
            rack = self.registry.get(rack_id)
            self.notifier.success(f"Mounted {item.name} in {rack.name} at {slot}U")
            return {"id": item_id, "rack": rack_id, "slot": slot}
        return self._run("Mount", operation)

    def unmount(self, item_id: str) -> Dict[str, Any]:
        def operation():
            self.racks.unmount(item_id)
            return {"id": item_id}
        return self._run("Unmount", operation)

    def mount_from_template(
        self,
        template: EquipmentTemplate,
        rack_id: str,
        slot: int,
    ) -> Dict[str, Any]:
        """Create a new instance off the plan and mount it in one step.

        The instance is created next to the rack; if the slot is rejected it
        is not created at all.
        """
        def operation():
            with self._atomic():
                rack = self.racks.get_rack(rack_id)
                instance_id = self.registry.add_instance(
                    template, rack.position.x, rack.position.y, on_canvas=False
                )
                self.racks.mount(instance_id, rack_id, slot)
            self.notifier.success(f"Mounted {template.name} in {rack.name} at {slot}U")
            return {"id": instance_id, "rack": rack_id, "slot": slot}
        return self._run("Mount", operation)

    def available_positions(self, rack_id: str, span_units: int) -> Dict[str, Any]:
        return self._run(
            "Rack query",
            lambda: {"positions": self.racks.available_positions(rack_id, span_units)},
        )

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def validate_connection(
        self,
        from_instance_id: str,
        from_port_id: str,
        to_instance_id: str,
        to_port_id: str,
    ) -> Dict[str, Any]:
        check = self.graph.validate(from_instance_id, from_port_id, to_instance_id, to_port_id)
        return success_response({"valid": check.valid, "reason": check.reason})

    def connect(
        self,
        from_instance_id: str,
        from_port_id: str,
        to_instance_id: str,
        to_port_id: str,
    ) -> Dict[str, Any]:
        def operation():
            connection = self.graph.connect(
                from_instance_id, from_port_id, to_instance_id, to_port_id
            )
            self.notifier.success(f"Connected {connection.name}")
            return connection.model_dump(mode="json")
        return self._run("Connect", operation)

    def disconnect(self, connection_id: str) -> Dict[str, Any]:
        def operation():
            connection = self.graph.disconnect(connection_id)
            return {"id": connection_id, "removed": connection is not None}
        return self._run("Disconnect", operation)

    # ------------------------------------------------------------------
    # Viewports
    # ------------------------------------------------------------------

    def set_layout_viewport(self, viewport: Viewport) -> None:
        self.layout_viewport = viewport

    def set_connection_viewport(self, viewport: Viewport) -> None:
        self.connection_viewport = viewport

    # ------------------------------------------------------------------
    # Whole-project
    # ------------------------------------------------------------------

    def bill_of_materials(self) -> BillOfMaterials:
        return build_bom(self)

    def clear(self) -> None:
        """Drop every instance, connection and node position; reset viewports."""
        for instance in self.registry.all_items():
            if self.registry.exists(instance.id):
                self.registry.remove(instance.id)
        self.graph.set_node_positions({})
        self.layout_viewport = Viewport.layout_default()
        self.connection_viewport = Viewport.connection_default()
        logger.info("Project cleared")

    def summary(self) -> Dict[str, Any]:
        return {
            "instances": len(self.registry),
            "on_canvas": len(self.registry.canvas_items()),
            "connections": len(self.graph),
            "total_cable_length": self.graph.total_length(),
        }


__all__ = ["StudioProject"]
