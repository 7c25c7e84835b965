"""Equipment templates (catalog entries) and the instances placed from them.

A template describes a product: its footprint, its ports and whether it
mounts in, or is, an equipment rack. An instance is one unit of that
product inside a project. Instances carry a denormalized copy of the
template data so that later catalog edits never retroactively change gear
that has already been placed.

Rack attributes:
    rack_units: height in rack units (U) when the gear is rack-mountable
    is_rack / rack_capacity: the gear is itself a rack with that many slots
    mounted_in_rack / rack_position: where a mounted instance sits
    mounted_items: ids of instances mounted inside a rack instance
"""

import logging
import uuid
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .geometry import BoundingBox, Dimensions, Position
from .port_spec import Port

logger = logging.getLogger(__name__)


class EquipmentTemplate(BaseModel):
    """Catalog entry for a piece of studio gear.

    Attributes:
        id: Catalog identifier
        name: Display name (e.g., "Genelec 1031A")
        product_model: Manufacturer and model (e.g., "SSL Matrix 2")
        dimensions: Footprint in meters
        ports: Connection points
        category: Catalog category (e.g., "Speakers")
        icon: Optional icon/image reference
        rack_units: Height in U when rack-mountable
        is_rack: True when the gear is an equipment rack
        rack_capacity: Number of 1U slots when is_rack
        tags: Free-form catalog tags
        is_official: True for globally curated gear
    """

    model_config = {"frozen": True}

    id: str = Field(..., min_length=1, description="Catalog identifier")
    name: str = Field(..., min_length=1, description="Display name")
    product_model: str = Field(default="", description="Manufacturer and model")
    dimensions: Dimensions = Field(..., description="Footprint in meters")
    ports: List[Port] = Field(default_factory=list, description="Connection points")
    category: Optional[str] = Field(default=None, description="Catalog category")
    icon: Optional[str] = Field(default=None, description="Icon reference")
    rack_units: Optional[int] = Field(default=None, gt=0, description="Height in U")
    is_rack: bool = Field(default=False, description="Gear is an equipment rack")
    rack_capacity: Optional[int] = Field(default=None, gt=0, description="Rack slots")
    tags: List[str] = Field(default_factory=list, description="Catalog tags")
    is_official: bool = Field(default=False, description="Globally curated gear")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        """Catalog backends hand out numeric and string ids alike."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("ports")
    @classmethod
    def validate_unique_port_ids(cls, v: List[Port]) -> List[Port]:
        """Port ids must be unique within one device."""
        seen = set()
        for port in v:
            if port.id in seen:
                raise ValueError(f"Duplicate port id '{port.id}'")
            seen.add(port.id)
        return v

    @model_validator(mode="after")
    def validate_rack_capacity(self) -> "EquipmentTemplate":
        if self.is_rack and self.rack_capacity is None:
            raise ValueError("A rack template needs a rack_capacity")
        if not self.is_rack and self.rack_capacity is not None:
            raise ValueError("rack_capacity is only valid on rack templates")
        return self


class EquipmentInstance(BaseModel):
    """One placed unit of gear in a project.

    The rack back-references (``mounted_in_rack``/``rack_position`` on the
    child, ``mounted_items`` on the rack) are written only by the rack
    allocator.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Instance id")
    template_id: str = Field(..., description="Catalog template this was placed from")

    # Denormalized template data
    name: str = Field(..., min_length=1)
    product_model: str = Field(default="")
    dimensions: Dimensions
    ports: List[Port] = Field(default_factory=list)
    category: Optional[str] = None
    icon: Optional[str] = None
    rack_units: Optional[int] = Field(default=None, gt=0)
    is_rack: bool = False
    rack_capacity: Optional[int] = Field(default=None, gt=0)

    # Instance state
    position: Position = Field(default_factory=lambda: Position(x=0.0, y=0.0))
    rotation: float = Field(default=0.0, allow_inf_nan=False, description="Degrees in [0, 360)")
    is_on_canvas: bool = True
    selected: bool = False
    mounted_in_rack: Optional[str] = None
    rack_position: Optional[int] = Field(default=None, ge=1)
    mounted_items: Optional[List[str]] = None

    @field_validator("rotation")
    @classmethod
    def wrap_rotation(cls, v: float) -> float:
        return normalize_rotation(v)

    @model_validator(mode="after")
    def validate_placement(self) -> "EquipmentInstance":
        if self.mounted_in_rack is not None and self.is_on_canvas:
            raise ValueError(
                f"Instance {self.id} cannot be on the canvas while mounted in "
                f"rack {self.mounted_in_rack}"
            )
        if (self.mounted_in_rack is None) != (self.rack_position is None):
            raise ValueError(
                f"Instance {self.id} needs both mounted_in_rack and rack_position, or neither"
            )
        if self.mounted_items is not None and not self.is_rack:
            raise ValueError(f"Instance {self.id} is not a rack but lists mounted items")
        return self

    @classmethod
    def from_template(
        cls,
        template: EquipmentTemplate,
        x: float,
        y: float,
        on_canvas: bool = True,
    ) -> "EquipmentInstance":
        """Create an instance with a private copy of the template data."""
        return cls(
            template_id=template.id,
            name=template.name,
            product_model=template.product_model,
            dimensions=template.dimensions.model_copy(),
            ports=[port.model_copy() for port in template.ports],
            category=template.category,
            icon=template.icon,
            rack_units=template.rack_units,
            is_rack=template.is_rack,
            rack_capacity=template.rack_capacity,
            position=Position(x=x, y=y),
            is_on_canvas=on_canvas,
            mounted_items=[] if template.is_rack else None,
        )

    @property
    def is_mounted(self) -> bool:
        return self.mounted_in_rack is not None

    @property
    def rack_span(self) -> Optional[range]:
        """Slots occupied in the parent rack, bottom-up and inclusive."""
        if self.rack_position is None:
            return None
        return range(self.rack_position, self.rack_position + (self.rack_units or 1))

    def bounding_box(self) -> BoundingBox:
        """Unrotated footprint box centered on the instance position."""
        return BoundingBox.around(
            self.position, self.dimensions.width, self.dimensions.height
        )

    def get_port(self, port_id: str) -> Optional[Port]:
        for port in self.ports:
            if port.id == port_id:
                return port
        return None


def normalize_rotation(degrees: float) -> float:
    """Wrap an angle into [0, 360)."""
    wrapped = degrees % 360.0
    # -0.0 % 360 and tiny negatives can land exactly on 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


__all__ = [
    "EquipmentTemplate",
    "EquipmentInstance",
    "normalize_rotation",
]
