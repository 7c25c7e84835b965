"""Cable connections between device ports."""

import logging
import uuid
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .port_spec import Gender

logger = logging.getLogger(__name__)


class CableConnection(BaseModel):
    """A virtual cable from an output port to an input port.

    Name, cable type, cable-end genders and length are all derived when the
    connection is made; length is refreshed whenever either endpoint moves.

    Attributes:
        id: Connection identifier
        name: Display name built from the endpoint names
        cable_type: Connector description (e.g., "XLR plug to XLR socket cable")
        from_instance_id: Source instance
        from_port_id: Source port (always an output)
        to_instance_id: Destination instance
        to_port_id: Destination port (always an input)
        from_cable_end: Gender of the cable end at the source
        to_cable_end: Gender of the cable end at the destination
        length: Estimated cable length in meters
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = Field(..., description="Derived display name")
    cable_type: str = Field(default="", description="Derived connector description")
    from_instance_id: str
    from_port_id: str
    to_instance_id: str
    to_port_id: str
    from_cable_end: Gender
    to_cable_end: Gender
    length: float = Field(default=0.0, ge=0, allow_inf_nan=False, description="Meters")

    @model_validator(mode="after")
    def validate_distinct_endpoints(self) -> "CableConnection":
        if self.from_instance_id == self.to_instance_id:
            raise ValueError("A cable cannot start and end on the same device")
        return self


class ConnectionCheck(BaseModel):
    """Outcome of validating a prospective connection."""

    valid: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "ConnectionCheck":
        return cls(valid=True)

    @classmethod
    def rejected(cls, reason: str) -> "ConnectionCheck":
        return cls(valid=False, reason=reason)


__all__ = [
    "CableConnection",
    "ConnectionCheck",
]
