"""
StudioFlow - studio layout and cabling planner core.

Places equipment on a physical floor plan, mounts gear in racks, wires
ports together in a separate connection view and persists the whole
project as a JSON document.
"""

from .core.project import StudioProject
from .persistence.project_persistence import ProjectPersistence, export_document, import_document

__version__ = "0.1.0"

__all__ = [
    "StudioProject",
    "ProjectPersistence",
    "export_document",
    "import_document",
]
