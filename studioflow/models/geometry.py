"""Planar geometry primitives shared by the layout and connection views.

All world coordinates are in meters with the origin at the top-left of the
plan and y growing downwards (screen-as-world). Screen coordinates are in
pixels relative to the top-left corner of the drawing surface.
"""

import logging
import math
from typing import List, Tuple

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Position(BaseModel):
    """A point in 2D space (world meters or screen pixels).

    Attributes:
        x: Horizontal coordinate
        y: Vertical coordinate
    """

    model_config = {"allow_inf_nan": False}

    x: float = Field(..., description="Horizontal coordinate")
    y: float = Field(..., description="Vertical coordinate")

    @classmethod
    def from_list(cls, pos: List[float]) -> "Position":
        """Create Position from [x, y] list.

        Raises:
            ValueError: If pos doesn't have exactly 2 elements
        """
        if len(pos) != 2:
            raise ValueError(f"Position must be [x, y], got {len(pos)} elements")
        return cls(x=pos[0], y=pos[1])

    def to_list(self) -> List[float]:
        """Convert to list format [x, y]."""
        return [self.x, self.y]

    def distance_to(self, other: "Position") -> float:
        """Euclidean distance to another point."""
        return math.hypot(other.x - self.x, other.y - self.y)


class Dimensions(BaseModel):
    """Footprint of a piece of equipment on the plan (meters)."""

    model_config = {"allow_inf_nan": False}

    width: float = Field(..., gt=0, description="Footprint width in meters")
    height: float = Field(..., gt=0, description="Footprint depth in meters")


class BoundingBox(BaseModel):
    """Axis-aligned bounding box.

    Attributes:
        min_x: Minimum x coordinate
        max_x: Maximum x coordinate
        min_y: Minimum y coordinate
        max_y: Maximum y coordinate
    """

    min_x: float = Field(..., description="Minimum x coordinate")
    max_x: float = Field(..., description="Maximum x coordinate")
    min_y: float = Field(..., description="Minimum y coordinate")
    max_y: float = Field(..., description="Maximum y coordinate")

    @property
    def width(self) -> float:
        """Computed width of bounding box."""
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        """Computed height of bounding box."""
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        """Computed center point of bounding box."""
        return (
            (self.min_x + self.max_x) / 2,
            (self.min_y + self.max_y) / 2
        )

    @classmethod
    def around(cls, center: Position, width: float, height: float) -> "BoundingBox":
        """Box of the given size centered on a point."""
        return cls(
            min_x=center.x - width / 2,
            max_x=center.x + width / 2,
            min_y=center.y - height / 2,
            max_y=center.y + height / 2,
        )

    def contains(self, point: Position) -> bool:
        """Inclusive point-in-box test."""
        return (
            self.min_x <= point.x <= self.max_x
            and self.min_y <= point.y <= self.max_y
        )


class WorldRect(BaseModel):
    """The part of the world currently visible through a viewport."""

    x: float
    y: float
    width: float
    height: float


def round_to_tenth(value: float) -> float:
    """Round to the nearest 0.1, halves rounding up."""
    return math.floor(value * 10 + 0.5) / 10


__all__ = [
    "Position",
    "Dimensions",
    "BoundingBox",
    "WorldRect",
    "round_to_tenth",
]
