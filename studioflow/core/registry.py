"""
Item Registry - Equipment Instances Placed in a Project

This module owns every EquipmentInstance of a project:
- Identity and creation from catalog templates
- Position, rotation, name, canvas visibility and selection
- Lifecycle hooks so dependent components (rack allocator, connection
  graph) keep their derived state in step with the registry
- Snapshot/restore so multi-step operations can be rolled back

Every mutation is synchronous and immediately visible to queries.

Usage:
    from studioflow.core.registry import ItemRegistry

    registry = ItemRegistry()
    instance_id = registry.add_instance(template, 2.0, 1.5)
    registry.update_rotation(instance_id, 90)
    registry.select(instance_id)

    for item in registry.canvas_items():
        draw(item)
"""

import logging
import math
from copy import deepcopy
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..models.equipment import EquipmentInstance, EquipmentTemplate, normalize_rotation
from ..models.geometry import Position
from .errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


# ============================================================================
# Lifecycle Hooks
# ============================================================================

class RegistryHook:
    """Base class for instance lifecycle event handlers.

    Subclass and override the methods you need. ``on_removing`` runs while
    the instance is still registered so handlers can read it; ``on_removed``
    runs after it is gone.
    """

    def on_added(self, instance: EquipmentInstance) -> None:
        """Called after an instance is added."""
        pass

    def on_moved(self, instance: EquipmentInstance, old_position: Position) -> None:
        """Called after an instance position changes."""
        pass

    def on_removing(self, instance: EquipmentInstance) -> None:
        """Called before an instance is removed."""
        pass

    def on_removed(self, instance: EquipmentInstance) -> None:
        """Called after an instance is removed."""
        pass


@dataclass
class RegistrySnapshot:
    """Deep copy of registry state for rollback."""
    instances: Dict[str, EquipmentInstance]


# ============================================================================
# Registry
# ============================================================================

class ItemRegistry:
    """Insertion-ordered store of the equipment instances in a project."""

    def __init__(self):
        self._instances: Dict[str, EquipmentInstance] = {}
        self._hooks: List[RegistryHook] = []

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def add_hook(self, hook: RegistryHook) -> None:
        self._hooks.append(hook)

    def remove_hook(self, hook: RegistryHook) -> None:
        if hook in self._hooks:
            self._hooks.remove(hook)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def add_instance(
        self,
        template: EquipmentTemplate,
        world_x: float,
        world_y: float,
        on_canvas: bool = True,
    ) -> str:
        """Place a new instance of a catalog template.

        Args:
            template: Catalog template to copy
            world_x: World x of the instance center
            world_y: World y of the instance center
            on_canvas: False to create the instance off the plan (e.g. for
                immediate rack mounting)

        Returns:
            The new instance id

        Raises:
            ValidationError: If a coordinate is not a finite number
        """
        try:
            instance = EquipmentInstance.from_template(template, world_x, world_y, on_canvas)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid position ({world_x}, {world_y}) for {template.name}"
            ) from e
        self.insert(instance)
        return instance.id

    def insert(self, instance: EquipmentInstance) -> None:
        """Register an already-built instance (used when loading projects).

        Raises:
            ValidationError: If the id is already taken
        """
        if instance.id in self._instances:
            raise ValidationError(f"Instance {instance.id} already exists")

        self._instances[instance.id] = instance
        logger.debug(f"Added instance {instance.id} ({instance.name})")
        for hook in self._hooks:
            hook.on_added(instance)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, instance_id: str) -> EquipmentInstance:
        """Look up an instance.

        Raises:
            NotFoundError: If no instance has this id
        """
        instance = self._instances.get(instance_id)
        if instance is None:
            raise NotFoundError("instance", instance_id)
        return instance

    def find(self, instance_id: str) -> Optional[EquipmentInstance]:
        return self._instances.get(instance_id)

    def exists(self, instance_id: str) -> bool:
        return instance_id in self._instances

    def canvas_items(self) -> List[EquipmentInstance]:
        """Instances currently placed on the layout plan."""
        return [item for item in self._instances.values() if item.is_on_canvas]

    def all_items(self) -> List[EquipmentInstance]:
        """Every instance, on the plan or not."""
        return list(self._instances.values())

    def selected_item(self) -> Optional[EquipmentInstance]:
        for item in self._instances.values():
            if item.selected:
                return item
        return None

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, instance_id: str) -> bool:
        return instance_id in self._instances

    def __iter__(self) -> Iterator[EquipmentInstance]:
        return iter(list(self._instances.values()))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update_position(self, instance_id: str, x: float, y: float) -> None:
        """Move an instance; the position is validated before anything changes.

        Raises:
            NotFoundError: If the id is unknown
            ValidationError: If a coordinate is not a finite number
        """
        instance = self.get(instance_id)
        try:
            new_position = Position(x=x, y=y)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid position ({x}, {y}) for {instance.name}") from e

        old_position = instance.position
        instance.position = new_position

        for hook in self._hooks:
            hook.on_moved(instance, old_position)

    def update_rotation(self, instance_id: str, degrees: float) -> None:
        """Store a rotation, wrapped into [0, 360). Snapping is the caller's job."""
        instance = self.get(instance_id)
        if not math.isfinite(degrees):
            raise ValidationError(f"Invalid rotation {degrees} for {instance.name}")
        instance.rotation = normalize_rotation(degrees)

    def rename(self, instance_id: str, name: str) -> None:
        instance = self.get(instance_id)
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("name cannot be empty")

        logger.debug(f"Renamed instance {instance_id}: {instance.name!r} -> {cleaned!r}")
        instance.name = cleaned

    def select(self, instance_id: Optional[str]) -> None:
        """Select one instance (clearing any prior selection), or none."""
        if instance_id is not None:
            self.get(instance_id)

        for item in self._instances.values():
            item.selected = item.id == instance_id

    def set_on_canvas(self, instance_id: str, on_canvas: bool) -> None:
        """Show or hide an instance on the layout plan.

        Raises:
            ValidationError: If the instance is mounted in a rack
        """
        instance = self.get(instance_id)
        if instance.is_mounted and on_canvas:
            raise ValidationError(
                f"{instance.name} is mounted in a rack; unmount it first"
            )
        instance.is_on_canvas = on_canvas

    def toggle_on_canvas(self, instance_id: str) -> None:
        instance = self.get(instance_id)
        self.set_on_canvas(instance_id, not instance.is_on_canvas)

    def remove(self, instance_id: str) -> EquipmentInstance:
        """Remove an instance, letting hooks cascade the removal.

        Returns:
            The removed instance

        Raises:
            NotFoundError: If no instance has this id
        """
        instance = self.get(instance_id)

        for hook in self._hooks:
            hook.on_removing(instance)

        del self._instances[instance_id]
        logger.debug(f"Removed instance {instance_id} ({instance.name})")

        for hook in self._hooks:
            hook.on_removed(instance)
        return instance

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def create_snapshot(self) -> RegistrySnapshot:
        return RegistrySnapshot(instances=deepcopy(self._instances))

    def restore_snapshot(self, snapshot: RegistrySnapshot) -> None:
        self._instances = deepcopy(snapshot.instances)

    def clear(self) -> None:
        self._instances.clear()


__all__ = [
    "RegistryHook",
    "RegistrySnapshot",
    "ItemRegistry",
]
