"""Port specification for equipment connection points.

A port is a physical jack on a device. It carries three independent
classifications:

    - direction: whether signal leaves (output) or enters (input) the device
    - connector: the physical connector type (XLR, 1/4", MIDI, ...)
    - category: the signal category (balanced, digital, ...)

plus the mechanical gender of the jack itself. The gender of a cable end is
always the opposite of the jack it plugs into.

Compatibility between signal categories is a fixed rule set: identical
categories always connect, and balanced/unbalanced connect in either
direction through an implied adapter. Nothing else connects.
"""

import logging
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PortDirection(str, Enum):
    """Signal flow direction of a port."""
    INPUT = "input"
    OUTPUT = "output"


class ConnectorType(str, Enum):
    """Physical connector types found on studio gear."""
    XLR = "XLR"
    QUARTER_INCH = "1/4"
    EIGHTH_INCH = "1/8"
    MIDI = "MIDI"
    USB = "USB"
    TRS = "TRS"
    RCA = "RCA"
    OPTICAL = "Optical"
    BNC = "BNC"


class SignalCategory(str, Enum):
    """Electrical signal category carried by a port."""
    UNBALANCED = "unbalanced"
    BALANCED = "balanced"
    DIGITAL = "digital"
    MIDI = "midi"
    CONTROL = "control"


class Gender(str, Enum):
    """Mechanical gender of a jack or cable end."""
    PLUG = "plug"
    SOCKET = "socket"

    def opposite(self) -> "Gender":
        return Gender.SOCKET if self is Gender.PLUG else Gender.PLUG


# Pairs connectable through an implied adapter, on top of identical categories
ADAPTER_PAIRS = frozenset({
    (SignalCategory.UNBALANCED, SignalCategory.BALANCED),
    (SignalCategory.BALANCED, SignalCategory.UNBALANCED),
})

# Connectors whose cable name states which end is the plug
GENDERED_CONNECTORS = frozenset({
    ConnectorType.XLR,
    ConnectorType.MIDI,
    ConnectorType.BNC,
})


def categories_compatible(source: SignalCategory, destination: SignalCategory) -> bool:
    """Check whether a source category may drive a destination category."""
    return source == destination or (source, destination) in ADAPTER_PAIRS


class Port(BaseModel):
    """A connection point on a device.

    Attributes:
        id: Port identifier, unique within its device
        name: Display name (e.g., "Main Out L")
        direction: input or output
        connector: Physical connector type
        category: Signal category
        gender: Mechanical gender of the jack on the device
        group: Optional grouping label (e.g., "Monitor Outs")
    """

    id: str = Field(..., min_length=1, description="Port identifier")
    name: str = Field(..., description="Display name")
    direction: PortDirection = Field(..., description="Signal flow direction")
    connector: ConnectorType = Field(..., description="Physical connector type")
    category: SignalCategory = Field(..., description="Signal category")
    gender: Gender = Field(..., description="Gender of the jack on the device")
    group: Optional[str] = Field(None, description="Optional grouping label")

    @property
    def is_input(self) -> bool:
        return self.direction == PortDirection.INPUT

    @property
    def is_output(self) -> bool:
        return self.direction == PortDirection.OUTPUT

    def cable_end(self) -> Gender:
        """Gender of the cable end that mates with this port."""
        return self.gender.opposite()


def describe_connector(port: Port, cable_end: Gender) -> str:
    """Short connector label for a cable end (e.g., "XLR plug", "TRS")."""
    if port.connector in GENDERED_CONNECTORS:
        return f"{port.connector.value} {cable_end.value}"
    return port.connector.value


def format_cable_type(
    source: Port,
    destination: Port,
    source_end: Gender,
    destination_end: Gender,
) -> str:
    """Describe the cable needed between two ports.

    Returns:
        e.g. "XLR plug to XLR socket cable" or "TRS to 1/4 Conversion cable"
    """
    conversion = " Conversion" if source.connector != destination.connector else ""
    return (
        f"{describe_connector(source, source_end)} to "
        f"{describe_connector(destination, destination_end)}{conversion} cable"
    )


class PortLayout:
    """Helper for placing port anchors on a node in the connection view.

    Nodes are drawn as fixed-width cards with inputs stacked down the left
    edge and outputs down the right edge, one row per port.
    """

    NODE_WIDTH = 3.0
    MIN_NODE_HEIGHT = 2.0
    HEADER_HEIGHT = 0.8
    ROW_HEIGHT = 0.25
    FIRST_ROW_OFFSET = 0.6
    EDGE_INSET = 0.08
    ANCHOR_HIT_RADIUS = 0.12

    @staticmethod
    def node_size(ports: List[Port]) -> Tuple[float, float]:
        """Compute (width, height) of a node card for a port list."""
        inputs = sum(1 for port in ports if port.is_input)
        outputs = sum(1 for port in ports if port.is_output)
        rows = max(inputs, outputs, 1)
        height = max(
            PortLayout.MIN_NODE_HEIGHT,
            PortLayout.HEADER_HEIGHT + rows * PortLayout.ROW_HEIGHT,
        )
        return PortLayout.NODE_WIDTH, height

    @staticmethod
    def anchor_offset(ports: List[Port], port_id: str) -> Optional[Tuple[float, float]]:
        """Offset of a port anchor relative to the node center.

        Returns:
            (x_offset, y_offset), or None if the port is not in the list
        """
        width, height = PortLayout.node_size(ports)
        for direction in (PortDirection.INPUT, PortDirection.OUTPUT):
            same_side = [port for port in ports if port.direction == direction]
            for index, port in enumerate(same_side):
                if port.id != port_id:
                    continue
                y = -height / 2 + PortLayout.FIRST_ROW_OFFSET + index * PortLayout.ROW_HEIGHT
                if direction == PortDirection.INPUT:
                    x = -width / 2 + PortLayout.EDGE_INSET
                else:
                    x = width / 2 - PortLayout.EDGE_INSET
                return x, y
        return None


__all__ = [
    "PortDirection",
    "ConnectorType",
    "SignalCategory",
    "Gender",
    "Port",
    "PortLayout",
    "categories_compatible",
    "describe_connector",
    "format_cable_type",
]
