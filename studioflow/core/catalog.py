"""Read-only catalog of equipment templates.

The catalog is supplied from outside the core (a gear database, a bundled
JSON file) and only ever queried here. Queries are name-ordered, filterable
by free text, category and rack flag, and paginated with a cursor that
names the last template of the previous page.

Usage:
    catalog = Catalog.from_records(records)
    page = catalog.query(search="genelec", page_size=20)
    while page.has_more:
        page = catalog.query(search="genelec", page_size=20, cursor=page.next_cursor)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..models.equipment import EquipmentTemplate
from .errors import MalformedInputError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


@dataclass
class CatalogPage:
    """One page of catalog results."""
    items: List[EquipmentTemplate] = field(default_factory=list)
    has_more: bool = False
    next_cursor: Optional[str] = None
    total: int = 0


class Catalog:
    """Immutable, name-ordered collection of EquipmentTemplates."""

    def __init__(self, templates: Iterable[EquipmentTemplate] = ()):
        by_id: Dict[str, EquipmentTemplate] = {}
        for template in templates:
            if template.id in by_id:
                raise MalformedInputError(f"Duplicate template id '{template.id}' in catalog")
            by_id[template.id] = template

        self._by_id = by_id
        self._ordered = sorted(by_id.values(), key=lambda t: (t.name.lower(), t.id))

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "Catalog":
        """Build a catalog from plain records, skipping invalid ones with a warning."""
        templates = []
        for index, record in enumerate(records):
            try:
                templates.append(EquipmentTemplate.model_validate(record))
            except PydanticValidationError as e:
                logger.warning(f"Skipping invalid catalog record #{index}: {e.error_count()} error(s)")
        return cls(templates)

    def get(self, template_id: str) -> EquipmentTemplate:
        template = self._by_id.get(str(template_id))
        if template is None:
            raise NotFoundError("template", str(template_id))
        return template

    def categories(self) -> List[str]:
        """Distinct categories, sorted."""
        return sorted({t.category for t in self._ordered if t.category})

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self):
        return iter(self._ordered)

    @staticmethod
    def _matches(
        template: EquipmentTemplate,
        search: Optional[str],
        category: Optional[str],
        is_rack: Optional[bool],
    ) -> bool:
        if category and template.category != category:
            return False
        if is_rack is not None and template.is_rack != is_rack:
            return False
        if search:
            needle = search.strip().lower()
            haystack = [template.name, template.product_model, template.category or ""]
            haystack.extend(template.tags)
            if not any(needle in text.lower() for text in haystack):
                return False
        return True

    def query(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        is_rack: Optional[bool] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        cursor: Optional[str] = None,
    ) -> CatalogPage:
        """Filter and paginate the catalog.

        Args:
            search: Case-insensitive text matched against name, product
                model, category and tags
            category: Exact category filter
            is_rack: Only racks (True) or only non-racks (False)
            page_size: Maximum items per page
            cursor: ``next_cursor`` of the previous page

        Returns:
            CatalogPage with the matching items
        """
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        matches = [t for t in self._ordered if self._matches(t, search, category, is_rack)]

        start = 0
        if cursor is not None:
            for index, template in enumerate(matches):
                if template.id == cursor:
                    start = index + 1
                    break
            else:
                logger.warning(f"Unknown catalog cursor '{cursor}', starting from the first page")

        items = matches[start:start + page_size]
        has_more = start + page_size < len(matches)
        return CatalogPage(
            items=items,
            has_more=has_more,
            next_cursor=items[-1].id if has_more and items else None,
            total=len(matches),
        )


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "CatalogPage",
    "Catalog",
]
