"""Bill of materials for a studio project.

Equipment is grouped by (name, product model) with a quantity per group;
every cable is listed on its own line with its estimated length.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..models.geometry import Dimensions, round_to_tenth

logger = logging.getLogger(__name__)


@dataclass
class EquipmentLine:
    name: str
    product_model: str
    category: str
    quantity: int
    dimensions: Optional[Dimensions] = None


@dataclass
class CableLine:
    connection_id: str
    name: str
    cable_type: str
    length: float
    quantity: int = 1


@dataclass
class BillOfMaterials:
    """Equipment and cable lines plus totals."""
    equipment: List[EquipmentLine] = field(default_factory=list)
    cables: List[CableLine] = field(default_factory=list)

    @property
    def equipment_count(self) -> int:
        return sum(line.quantity for line in self.equipment)

    @property
    def cable_count(self) -> int:
        return sum(line.quantity for line in self.cables)

    @property
    def total_cable_length(self) -> float:
        return round_to_tenth(sum(line.length * line.quantity for line in self.cables))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "equipment": [
                {
                    "name": line.name,
                    "product_model": line.product_model,
                    "category": line.category,
                    "quantity": line.quantity,
                    "dimensions": line.dimensions.model_dump() if line.dimensions else None,
                }
                for line in self.equipment
            ],
            "cables": [
                {
                    "id": line.connection_id,
                    "name": line.name,
                    "cable_type": line.cable_type,
                    "length": line.length,
                    "quantity": line.quantity,
                }
                for line in self.cables
            ],
            "totals": {
                "equipment": self.equipment_count,
                "cables": self.cable_count,
                "cable_length": self.total_cable_length,
            },
        }


def build_bom(project) -> BillOfMaterials:
    """Summarize every instance and connection of a StudioProject."""
    groups: Dict[tuple, EquipmentLine] = {}
    for item in project.registry.all_items():
        key = (item.name, item.product_model)
        line = groups.get(key)
        if line is None:
            line = EquipmentLine(
                name=item.name,
                product_model=item.product_model,
                category=item.category or "Other",
                quantity=0,
                dimensions=item.dimensions,
            )
            groups[key] = line
        line.quantity += 1

    cables = [
        CableLine(
            connection_id=connection.id,
            name=connection.name,
            cable_type=connection.cable_type,
            length=connection.length,
        )
        for connection in project.graph.connections()
    ]

    bom = BillOfMaterials(equipment=list(groups.values()), cables=cables)
    logger.debug(
        f"BOM: {bom.equipment_count} equipment items, {bom.cable_count} cables, "
        f"{bom.total_cable_length}m"
    )
    return bom


__all__ = [
    "EquipmentLine",
    "CableLine",
    "BillOfMaterials",
    "build_bom",
]
