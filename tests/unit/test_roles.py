"""Tests for role resolution."""

from __future__ import annotations

import pytest

from kbmcp.core.catalog import CategoryIndex
from kbmcp.core.roles import ROLE_DESCRIPTORS, RoleResolver
from tests.samples import BLOG_ID, BRAND_ID, CLINICAL_ID, KB_MAP

pytestmark = pytest.mark.unit


@pytest.fixture
def resolver() -> RoleResolver:
    return RoleResolver(CategoryIndex(lambda: KB_MAP))


def test_brand_document_is_mandatory_constraint(resolver: RoleResolver) -> None:
    role = resolver.resolve_role(BRAND_ID)
    assert role is not None
    assert role.category == "Brand & Marketing"
    assert role.label == "MANDATORY CONSTRAINTS"
    assert role.instruction.startswith("You MUST follow every rule")


@pytest.mark.parametrize(
    ("doc_id", "label"),
    [
        (CLINICAL_ID, "REFERENCE — CITE ACCURATELY"),
        (BLOG_ID, "REFERENCE ONLY — DO NOT COPY"),
    ],
)
def test_role_follows_category(resolver: RoleResolver, doc_id: str, label: str) -> None:
    role = resolver.resolve_role(doc_id)
    assert role is not None and role.label == label


def test_unknown_id_has_no_role(resolver: RoleResolver) -> None:
    assert resolver.resolve_role("not-in-the-map") is None
    assert resolver.resolve_category("not-in-the-map") is None


def test_category_without_descriptor_has_no_role(resolver: RoleResolver) -> None:
    assert resolver.resolve_category("budget-2024") == "Finance"
    assert resolver.resolve_role("budget-2024") is None


def test_descriptor_table_covers_five_categories() -> None:
    assert set(ROLE_DESCRIPTORS) == {
        "Brand & Marketing",
        "Customer Personas & Journeys",
        "Clinical & Research",
        "Topic Articles & Blog Content",
        "Product",
    }
    assert ROLE_DESCRIPTORS["Product"].label == "SOURCE OF TRUTH"
    assert ROLE_DESCRIPTORS["Customer Personas & Journeys"].label == "CONTEXT"


def test_reset_rereads_map() -> None:
    text = {"value": "## Product\n- Manual (id: `m1`)\n"}
    resolver = RoleResolver(CategoryIndex(lambda: text["value"]))
    assert resolver.resolve_role("m1").label == "SOURCE OF TRUTH"
    text["value"] = "## Clinical & Research\n- Manual (id: `m1`)\n"
    assert resolver.resolve_role("m1").label == "SOURCE OF TRUTH"
    resolver.reset()
    assert resolver.resolve_role("m1").label == "REFERENCE — CITE ACCURATELY"
