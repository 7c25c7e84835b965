"""
Core Layer - project state and the operations on it

Modules:
- registry: placed equipment instances with lifecycle hooks
- rack_allocator: rack slot bookkeeping
- connection_graph: cables between ports and the connection-view layout
- placement: hit testing, drag/rotate sessions, template drops
- transform: screen <-> world coordinates, zoom and pan
- session: pointer input controllers for the layout and connection views
- catalog: read-only equipment template catalog
- bom: bill of materials
- project: the StudioProject facade
"""

from .errors import (
    StudioError,
    ValidationError,
    NotFoundError,
    MalformedInputError,
)
from .notifications import (
    Notification,
    NotificationLevel,
    Notifier,
)
from .registry import (
    ItemRegistry,
    RegistryHook,
    RegistrySnapshot,
)
from .rack_allocator import RackAllocator
from .connection_graph import (
    ConnectionGraph,
    GraphSnapshot,
    calculate_length,
)
from .catalog import Catalog, CatalogPage
from .bom import BillOfMaterials, build_bom
from .project import StudioProject
from .session import (
    ConnectionCanvasController,
    GraphDragMode,
    LayoutCanvasController,
)

__all__ = [
    # Errors
    'StudioError',
    'ValidationError',
    'NotFoundError',
    'MalformedInputError',

    # Notifications
    'Notification',
    'NotificationLevel',
    'Notifier',

    # State
    'ItemRegistry',
    'RegistryHook',
    'RegistrySnapshot',
    'RackAllocator',
    'ConnectionGraph',
    'GraphSnapshot',
    'calculate_length',

    # Catalog / BOM
    'Catalog',
    'CatalogPage',
    'BillOfMaterials',
    'build_bom',

    # Facade and controllers
    'StudioProject',
    'LayoutCanvasController',
    'ConnectionCanvasController',
    'GraphDragMode',
]
