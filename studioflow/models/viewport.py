"""Viewport state for the pannable, zoomable canvases."""

from pydantic import BaseModel, Field

from ..config.settings import get_setting


class Viewport(BaseModel):
    """Pan offset and zoom of one canvas view.

    Attributes:
        offset_x: Horizontal pan offset in screen pixels
        offset_y: Vertical pan offset in screen pixels
        zoom: Screen pixels per world meter
    """

    model_config = {"frozen": True, "allow_inf_nan": False}

    offset_x: float = Field(default=0.0, description="Pan offset (pixels)")
    offset_y: float = Field(default=0.0, description="Pan offset (pixels)")
    zoom: float = Field(default=50.0, gt=0, description="Pixels per meter")

    @classmethod
    def layout_default(cls) -> "Viewport":
        """Initial viewport of the physical layout view."""
        return cls(
            offset_x=get_setting('layout_offset_x'),
            offset_y=get_setting('layout_offset_y'),
            zoom=get_setting('layout_zoom'),
        )

    @classmethod
    def connection_default(cls) -> "Viewport":
        """Initial viewport of the connection graph view, centered near the origin."""
        return cls(
            offset_x=get_setting('connection_offset_x'),
            offset_y=get_setting('connection_offset_y'),
            zoom=get_setting('connection_zoom'),
        )


__all__ = ["Viewport"]
