"""Project persistence."""

from .project_persistence import (
    DOCUMENT_VERSION,
    ProjectDocument,
    ProjectPersistence,
    canonical_json_dump,
    export_document,
    import_document,
)

__all__ = [
    "DOCUMENT_VERSION",
    "ProjectDocument",
    "ProjectPersistence",
    "canonical_json_dump",
    "export_document",
    "import_document",
]
