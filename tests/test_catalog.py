"""Tests for the read-only equipment catalog."""

import pytest

from studioflow.core.catalog import Catalog
from studioflow.core.errors import MalformedInputError, NotFoundError
from tests.fixtures.gear import all_templates, monitor_template


@pytest.fixture
def catalog():
    return Catalog(all_templates())


class TestPagination:
    """Test name ordering and cursor pagination."""

    def test_ordered_by_name(self, catalog):
        assert [t.id for t in catalog] == [
            "rack-12u", "dbx-160", "genelec-8030c", "mackie-1202",
            "motu-m4", "42", "rme-octamic",
        ]

    def test_pages_are_stable(self, catalog):
        """Test that following cursors visits every item exactly once."""
        page = catalog.query(page_size=3)
        assert [t.id for t in page.items] == ["rack-12u", "dbx-160", "genelec-8030c"]
        assert page.has_more
        assert page.next_cursor == "genelec-8030c"
        assert page.total == 7

        page = catalog.query(page_size=3, cursor=page.next_cursor)
        assert [t.id for t in page.items] == ["mackie-1202", "motu-m4", "42"]

        page = catalog.query(page_size=3, cursor=page.next_cursor)
        assert [t.id for t in page.items] == ["rme-octamic"]
        assert not page.has_more
        assert page.next_cursor is None

    def test_default_page_size(self, catalog):
        page = catalog.query()
        assert len(page.items) == 7
        assert not page.has_more

    def test_invalid_page_size(self, catalog):
        with pytest.raises(ValueError):
            catalog.query(page_size=0)


class TestFilters:
    """Test search and filters."""

    @pytest.mark.parametrize("search,expected", [
        ("motu", ["motu-m4"]),
        ("MONITOR", ["genelec-8030c"]),
        ("sequential", ["42"]),
        ("racks", ["rack-12u"]),
    ])
    def test_search_fields(self, catalog, search, expected):
        """Test matching on name, tags, product model and category."""
        assert [t.id for t in catalog.query(search=search).items] == expected

    def test_rack_filter(self, catalog):
        assert [t.id for t in catalog.query(is_rack=True).items] == ["rack-12u"]
        assert catalog.query(is_rack=False).total == 6

    def test_filters_compose(self, catalog):
        assert catalog.query(category="Speakers", search="genelec").total == 1
        assert catalog.query(category="Speakers", search="motu").total == 0

    def test_categories(self, catalog):
        assert catalog.categories() == [
            "Dynamics", "Interfaces", "Mixers", "Preamps", "Racks", "Speakers", "Synthesizers",
        ]


class TestLookup:
    """Test construction and lookup."""

    def test_get(self, catalog):
        assert catalog.get("motu-m4").name == "MOTU M4"
        assert catalog.get(42).name == "Prophet 6"

    def test_get_unknown(self, catalog):
        with pytest.raises(NotFoundError, match="template nope not found"):
            catalog.get("nope")

    def test_duplicate_ids(self):
        with pytest.raises(MalformedInputError):
            Catalog([monitor_template(), monitor_template()])

    def test_from_records_skips_invalid(self):
        records = [monitor_template().model_dump(), {"id": "broken"}]
        catalog = Catalog.from_records(records)
        assert len(catalog) == 1
