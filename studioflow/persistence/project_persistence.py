"""Project document export/import and JSON file persistence.

The persisted document is a flat JSON object:

    {
      "instances": [...], "connections": [...],
      "layout_viewport": {...}, "connection_viewport": {...},
      "node_layout_positions": {instance_id: {"x": ..., "y": ...}},
      "timestamp": "<ISO-8601>", "version": "1.0"
    }

Exported documents never contain null values or nested arrays (the
document stores this is written to reject both). Importing is lenient: a
corrupt document yields an empty project, and connections or rack mounts
that no longer resolve are dropped with a warning.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..core.errors import MalformedInputError, StudioError
from ..core.project import StudioProject
from ..models.connection import CableConnection
from ..models.equipment import EquipmentInstance
from ..models.geometry import Position
from ..models.viewport import Viewport

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = "1.0"


class ProjectDocument(BaseModel):
    """Schema of a persisted project document."""

    instances: List[EquipmentInstance] = Field(default_factory=list)
    connections: List[CableConnection] = Field(default_factory=list)
    layout_viewport: Optional[Viewport] = None
    connection_viewport: Optional[Viewport] = None
    node_layout_positions: Dict[str, Position] = Field(default_factory=dict)
    timestamp: Optional[str] = None
    version: str = DOCUMENT_VERSION


def _clean(value: Any) -> Any:
    """Drop None values and splice nested lists into their parent."""
    if isinstance(value, dict):
        return {k: _clean(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        flat: List[Any] = []
        for element in value:
            if element is None:
                continue
            cleaned = _clean(element)
            if isinstance(cleaned, list):
                flat.extend(cleaned)
            else:
                flat.append(cleaned)
        return flat
    return value


def _sort_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _sort_keys(value[k]) for k in sorted(value)}
    if isinstance(value, list):
        return [_sort_keys(v) for v in value]
    return value


def export_document(project: StudioProject) -> Dict[str, Any]:
    """Serialize a project into a persistable document.

    Transient selection state is not exported.
    """
    document = {
        "instances": [
            item.model_dump(mode="json", exclude={"selected"})
            for item in project.registry.all_items()
        ],
        "connections": [
            connection.model_dump(mode="json")
            for connection in project.graph.connections()
        ],
        "layout_viewport": project.layout_viewport.model_dump(mode="json"),
        "connection_viewport": project.connection_viewport.model_dump(mode="json"),
        "node_layout_positions": {
            instance_id: position.model_dump(mode="json")
            for instance_id, position in project.graph.node_positions().items()
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": DOCUMENT_VERSION,
    }
    return _sort_keys(_clean(document))


def _parse_document(document: Any) -> ProjectDocument:
    if document is None:
        raise MalformedInputError("Project document is missing")
    if not isinstance(document, dict):
        raise MalformedInputError(
            f"Project document must be an object, got {type(document).__name__}"
        )
    try:
        return ProjectDocument.model_validate(document)
    except PydanticValidationError as e:
        raise MalformedInputError(
            f"Project document is invalid: {e.error_count()} error(s)"
        ) from e


def import_document(document: Any) -> StudioProject:
    """Rebuild a project from a persisted document.

    Never raises for bad input: a missing, non-object or schema-invalid
    document gives an empty project with default viewports (and a warning
    notification on it).
    """
    try:
        parsed = _parse_document(document)
    except MalformedInputError as e:
        logger.warning(f"Loading empty project: {e.message}")
        project = StudioProject()
        project.notifier.warning(f"Could not load project: {e.message}")
        return project

    if parsed.version != DOCUMENT_VERSION:
        logger.warning(f"Project document version {parsed.version} differs from {DOCUMENT_VERSION}")

    project = StudioProject(
        layout_viewport=parsed.layout_viewport,
        connection_viewport=parsed.connection_viewport,
    )

    for instance in parsed.instances:
        instance.selected = False
        try:
            project.registry.insert(instance)
        except StudioError as e:
            logger.warning(f"Skipping instance {instance.id}: {e.message}")

    evicted = project.racks.rebuild()
    if evicted:
        project.notifier.warning(f"{len(evicted)} rack item(s) returned to the plan")

    dropped = 0
    for connection in parsed.connections:
        try:
            project.graph.restore(connection)
        except StudioError as e:
            dropped += 1
            logger.warning(f"Dropping connection {connection.id}: {e.message}")
    if dropped:
        project.notifier.warning(f"{dropped} connection(s) could not be restored")

    project.graph.set_node_positions(parsed.node_layout_positions)
    project.graph.recalculate_all_lengths()

    logger.info(
        f"Loaded project: {len(project.registry)} instances, {len(project.graph)} connections"
    )
    return project


def canonical_json_dump(data: Any, file_path: Path, **kwargs) -> None:
    """Write JSON with sorted keys for deterministic output.

    Args:
        data: Data to serialize
        file_path: Path to write to
        **kwargs: Additional arguments passed to json.dump
    """
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True, **kwargs)


class ProjectPersistence:
    """Saves and loads studio projects as JSON files."""

    def save(self, project: StudioProject, path: Union[str, Path]) -> Path:
        """Write a project document to ``path`` (parent directories are created).

        Returns:
            The path written
        """
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        canonical_json_dump(export_document(project), file_path)
        logger.info(f"Saved project to {file_path}")
        return file_path

    def load(self, path: Union[str, Path]) -> StudioProject:
        """Read a project document; an unreadable file loads as an empty project."""
        file_path = Path(path)
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read project file {file_path}: {e}")
            return import_document(None)

        logger.info(f"Loading project from {file_path}")
        return import_document(document)


__all__ = [
    "DOCUMENT_VERSION",
    "ProjectDocument",
    "export_document",
    "import_document",
    "canonical_json_dump",
    "ProjectPersistence",
]
