"""Data models for studio layouts: geometry, ports, equipment, cables, viewports.

All models are Pydantic schemas so that the persisted project document is
validated on the way in and dumped deterministically on the way out.
"""

from .geometry import (
    Position,
    Dimensions,
    BoundingBox,
    WorldRect,
)
from .port_spec import (
    PortDirection,
    ConnectorType,
    SignalCategory,
    Gender,
    Port,
    PortLayout,
)
from .equipment import (
    EquipmentTemplate,
    EquipmentInstance,
)
from .connection import (
    CableConnection,
    ConnectionCheck,
)
from .viewport import Viewport

__all__ = [
    # Geometry
    "Position",
    "Dimensions",
    "BoundingBox",
    "WorldRect",

    # Ports
    "PortDirection",
    "ConnectorType",
    "SignalCategory",
    "Gender",
    "Port",
    "PortLayout",

    # Equipment
    "EquipmentTemplate",
    "EquipmentInstance",

    # Cables
    "CableConnection",
    "ConnectionCheck",

    # Viewports
    "Viewport",
]
