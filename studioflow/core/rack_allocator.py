"""Rack Allocator - slot bookkeeping for gear mounted inside rack instances.

A rack is an EquipmentInstance with ``is_rack=True`` and an integer
``rack_capacity``. Slots are numbered from 1 at the physical bottom of the
rack; an item of ``rack_units`` height mounted at slot ``s`` occupies
``s .. s + rack_units - 1``. Renderers may flip this for top-down display.

The two sides of the rack relationship (``mounted_in_rack``/``rack_position``
on the child, ``mounted_items`` on the rack) are written here and nowhere
else, so they never disagree.
"""

import logging
from typing import Dict, List, Optional, Set

from ..models.equipment import EquipmentInstance
from .errors import ValidationError
from .registry import ItemRegistry, RegistryHook

logger = logging.getLogger(__name__)


class RackAllocator(RegistryHook):
    """Mounts and unmounts instances in racks held by an ItemRegistry.

    Registered as a registry hook so that removing a mounted item frees its
    slots and removing a rack returns its contents to the plan.
    """

    def __init__(self, registry: ItemRegistry):
        self.registry = registry
        registry.add_hook(self)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_rack(self, rack_id: str) -> EquipmentInstance:
        """Look up a rack instance.

        Raises:
            NotFoundError: If the id is unknown
            ValidationError: If the instance is not a rack
        """
        rack = self.registry.get(rack_id)
        if not rack.is_rack or not rack.rack_capacity:
            raise ValidationError(f"{rack.name} is not a rack")
        return rack

    def mounted_items(self, rack_id: str) -> List[EquipmentInstance]:
        """Instances mounted in a rack, in mounting order."""
        rack = self.get_rack(rack_id)
        return [self.registry.get(item_id) for item_id in (rack.mounted_items or [])]

    def occupied_slots(self, rack_id: str, ignore: Optional[str] = None) -> Set[int]:
        """Every slot covered by a mounted item's span."""
        occupied: Set[int] = set()
        for item in self.mounted_items(rack_id):
            if item.id == ignore or item.rack_span is None:
                continue
            occupied.update(item.rack_span)
        return occupied

    def available_positions(
        self,
        rack_id: str,
        span_units: int,
        ignore: Optional[str] = None,
    ) -> List[int]:
        """Starting slots where an item of ``span_units`` height fits.

        Args:
            rack_id: Rack instance id
            span_units: Height of the item in U
            ignore: Mounted item to leave out of the occupancy (re-slotting)

        Returns:
            Ascending slot numbers ``s`` in ``[1, capacity - span + 1]`` whose
            span ``[s, s + span - 1]`` is entirely free
        """
        rack = self.get_rack(rack_id)
        if span_units < 1:
            return []

        occupied = self.occupied_slots(rack_id, ignore=ignore)
        return [
            start
            for start in range(1, rack.rack_capacity - span_units + 2)
            if not any(slot in occupied for slot in range(start, start + span_units))
        ]

    def enclosing_racks(self, instance_id: str) -> List[str]:
        """Ids of the racks an instance sits in, innermost first."""
        chain: List[str] = []
        current = self.registry.find(instance_id)
        while current is not None and current.mounted_in_rack is not None:
            if current.mounted_in_rack in chain:
                break
            chain.append(current.mounted_in_rack)
            current = self.registry.find(current.mounted_in_rack)
        return chain

    def slot_map(self, rack_id: str) -> Dict[int, Optional[str]]:
        """Map each slot (bottom-up) to the id of the item covering it, or None."""
        rack = self.get_rack(rack_id)
        slots: Dict[int, Optional[str]] = {
            slot: None for slot in range(1, rack.rack_capacity + 1)
        }
        for item in self.mounted_items(rack_id):
            for slot in item.rack_span or ():
                if slot in slots:
                    slots[slot] = item.id
        return slots

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def mount(self, item_id: str, rack_id: str, slot: int) -> None:
        """Mount an instance in a rack at a starting slot.

        An item mounted in another rack is moved; an item already in this
        rack is re-slotted. Every check runs before anything changes.

        Raises:
            NotFoundError: If the item or rack does not exist
            ValidationError: If the item is not rack-mountable, the target is
                not a rack, the item is the rack, or the slot is unavailable
        """
        item = self.registry.get(item_id)
        rack = self.get_rack(rack_id)

        if item.id == rack.id:
            raise ValidationError(f"{rack.name} cannot be mounted in itself")
        if item.id in self.enclosing_racks(rack.id):
            raise ValidationError(f"{item.name} cannot be mounted in {rack.name}, which it contains")
        if not item.rack_units:
            raise ValidationError(f"{item.name} is not rack-mountable")

        ignore = item.id if item.mounted_in_rack == rack.id else None
        available = self.available_positions(rack.id, item.rack_units, ignore=ignore)
        if slot not in available:
            raise ValidationError(
                f"{item.rack_units}U at slot {slot} does not fit in {rack.name}"
            )

        if item.is_mounted:
            self.unmount(item.id)

        item.is_on_canvas = False
        item.mounted_in_rack = rack.id
        item.rack_position = slot
        rack.mounted_items = list(rack.mounted_items or []) + [item.id]

        logger.info(f"Mounted {item.name} in {rack.name} at {slot}U ({item.rack_units}U)")

    def unmount(self, item_id: str) -> None:
        """Take an instance out of its rack and put it back on the plan.

        No-op if the instance is not mounted.
        """
        item = self.registry.get(item_id)
        if not item.is_mounted:
            return

        rack = self.registry.find(item.mounted_in_rack)
        if rack is not None and rack.mounted_items is not None:
            rack.mounted_items = [i for i in rack.mounted_items if i != item.id]

        item.mounted_in_rack = None
        item.rack_position = None
        item.is_on_canvas = True
        logger.info(f"Unmounted {item.name}")

    def rebuild(self) -> List[str]:
        """Recompute every rack's ``mounted_items`` from the children.

        Used after loading a project, where only the child side of the
        relationship is trusted. Children whose rack is missing, or whose
        span no longer fits, go back on the plan.

        Returns:
            Ids of the children that had to be unmounted
        """
        for item in self.registry.all_items():
            if item.is_rack:
                item.mounted_items = []

        evicted = []
        for item in self.registry.all_items():
            if not item.is_mounted:
                continue

            rack = self.registry.find(item.mounted_in_rack)
            fits = (
                rack is not None
                and rack.is_rack
                and bool(rack.rack_capacity)
                and rack.id != item.id
                and item.id not in self.enclosing_racks(rack.id)
                and bool(item.rack_units)
                and item.rack_position in self.available_positions(rack.id, item.rack_units)
            )
            if fits:
                rack.mounted_items.append(item.id)
                continue

            logger.warning(
                f"{item.name} cannot stay in rack {item.mounted_in_rack} at "
                f"{item.rack_position}U; returning it to the plan"
            )
            item.mounted_in_rack = None
            item.rack_position = None
            item.is_on_canvas = True
            evicted.append(item.id)
        return evicted

    # ------------------------------------------------------------------
    # Registry hooks
    # ------------------------------------------------------------------

    def on_removing(self, instance: EquipmentInstance) -> None:
        if instance.is_mounted:
            self.unmount(instance.id)

        if instance.is_rack:
            for child_id in list(instance.mounted_items or []):
                if self.registry.exists(child_id):
                    self.unmount(child_id)
            instance.mounted_items = []


__all__ = ["RackAllocator"]
