"""Tests for the category index."""

from __future__ import annotations

import pytest

from kbmcp.core.catalog import CategoryIndex, parse_catalog
from kbmcp.core.model import CatalogEntry
from tests.samples import BRAND_ID, CLINICAL_ID, KB_MAP

pytestmark = pytest.mark.unit


def test_parse_catalog_binds_ids_to_current_header() -> None:
    parsed = parse_catalog(KB_MAP)
    assert parsed.bindings[BRAND_ID] == "Brand & Marketing"
    assert parsed.bindings[CLINICAL_ID] == "Clinical & Research"
    assert parsed.bindings["budget-2024"] == "Finance"
    assert parsed.categories == (
        "Brand & Marketing",
        "Clinical & Research",
        "Topic Articles & Blog Content",
        "Finance",
    )


def test_parse_catalog_ignores_ids_before_first_header_and_last_binding_wins() -> None:
    text = "\n".join(
        [
            "- orphan (id: `early`)",
            "## Product",
            "- Manual (id: `dup`)",
            "## Clinical & Research",
            "- Same doc again (id: `dup`)",
            "Plain prose line without an identifier.",
        ]
    )
    parsed = parse_catalog(text)
    assert "early" not in parsed.bindings
    assert parsed.bindings == {"dup": "Clinical & Research"}


def test_category_index_caches_until_reset() -> None:
    calls = []

    def loader() -> str:
        calls.append(1)
        return KB_MAP

    index = CategoryIndex(loader)
    assert index.resolve_category(BRAND_ID) == "Brand & Marketing"
    assert index.resolve_category(CLINICAL_ID) == "Clinical & Research"
    assert len(calls) == 1

    index.reset()
    index.categories()
    assert len(calls) == 2


def test_category_index_without_map_resolves_nothing(caplog) -> None:
    index = CategoryIndex(lambda: None)
    with caplog.at_level("INFO", logger="kbmcp"):
        assert index.resolve_category(BRAND_ID) is None
    assert index.categories() == ()
    assert "No knowledge-base map configured" in caplog.text


def test_category_index_survives_unreadable_map() -> None:
    def loader() -> str:
        raise PermissionError("denied")

    index = CategoryIndex(loader)
    assert index.resolve_category(BRAND_ID) is None


def test_entries_lists_every_binding() -> None:
    index = CategoryIndex(lambda: "## Product\n- Manual (id: `m1`)\n")
    assert index.entries() == [CatalogEntry(document_id="m1", category="Product")]
