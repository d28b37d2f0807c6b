"""Tests for the prompt workflows."""

from __future__ import annotations

import asyncio

import pytest

from kbmcp.backend.provider import ClientProvider
from kbmcp.errors import ConfigurationError, UnknownWorkflowError
from kbmcp.prompts import get_workflow, list_workflows, render_workflow
from kbmcp.prompts.builder import REMINDERS_HEADING
from kbmcp.prompts.templates import ORIENTATION_CLOSING
from tests.samples import BRAND_ID, WRITING_ID, write_config

pytestmark = pytest.mark.unit


def _render(kb, name, **arguments):
    return asyncio.run(render_workflow(kb, name, arguments))


async def _unavailable():
    raise ConfigurationError("Google Drive credentials are not configured")


def test_registry_lists_three_workflows() -> None:
    assert [workflow.name for workflow in list_workflows()] == [
        "orientation",
        "marketing-creation",
        "guide-creation",
    ]
    data = get_workflow("guide-creation").to_dict()
    assert [arg["name"] for arg in data["arguments"]] == ["topic", "guide_type"]
    assert data["arguments"][0]["required"] is True


def test_unknown_workflow() -> None:
    with pytest.raises(UnknownWorkflowError, match="Unknown prompt: nope"):
        get_workflow("nope")


def test_orientation_includes_map_corrections_and_task(kb, backend) -> None:
    message = _render(kb, "orientation", task_context="launch email")
    assert message.description == "Aletha Health knowledge base orientation"
    text = message.text
    assert "## Brand & Marketing\n- **Brand Positioning**" in text
    assert "## Known Corrections" in text
    assert text.index("### Global") < text.index("### Brand & Marketing")
    assert "Your current task: launch email." in text
    assert text.endswith(ORIENTATION_CLOSING)
    assert REMINDERS_HEADING not in text
    assert backend.calls == []


def test_orientation_without_guide_has_no_corrections(make_kb, tmp_path) -> None:
    kb = make_kb(paths=write_config(tmp_path / "bare", kb_guide=None))
    text = _render(kb, "orientation").text
    assert "## Known Corrections" not in text
    assert "Your current task" not in text


def test_orientation_without_map_explains_where_to_create_it(make_kb, tmp_path) -> None:
    paths = write_config(tmp_path / "nomap", kb_map=None)
    text = _render(make_kb(paths=paths), "orientation").text
    assert "No knowledge base map found." in text
    assert f"Create a map file at `{paths.map_path}`" in text
    assert text.endswith(ORIENTATION_CLOSING)


def test_marketing_preloads_critical_documents_with_roles(kb) -> None:
    message = _render(kb, "marketing-creation", task="email campaign")
    text = message.text
    assert message.description == "Marketing content creation: email campaign"
    assert "## Pre-loaded Brand Guidelines" in text
    for name in ("Brand Positioning", "Writing Guidelines", "Quick Claims Reference"):
        assert f"# [MANDATORY CONSTRAINTS] {name}" in text
    # the overlay is injected once, not per document
    assert "**Corrections (Global):**" not in text
    assert text.count("Never promise a cure.") == 1
    assert "## Current Task\nemail campaign" in text
    assert text.endswith("- Medical disclaimer required on all health content")
    assert "Pre-loading failed" not in text


def test_marketing_is_deterministic(kb) -> None:
    first = _render(kb, "marketing-creation", task="email campaign")
    second = _render(kb, "marketing-creation", task="email campaign")
    assert first == second


def test_marketing_notes_partial_failure(kb, backend) -> None:
    backend.denied.add(WRITING_ID)
    text = _render(kb, "marketing-creation", task="email").text
    assert "# [MANDATORY CONSTRAINTS] Brand Positioning" in text
    assert (
        "> **Note:** 1 document(s) could not be pre-loaded. Use `read_doc` with these IDs "
        f"to load them manually: `{WRITING_ID}`"
    ) in text


def test_marketing_with_unreachable_backend_lists_documents(make_kb) -> None:
    kb = make_kb(provider=ClientProvider(_unavailable))
    text = _render(kb, "marketing-creation", task="   ").text
    assert "Pre-loading failed." in text
    assert f"1. **Brand Positioning** (`{BRAND_ID}`)" in text
    assert "## Pre-loaded Brand Guidelines" not in text
    assert "## Current Task\ncreate marketing content" in text
    assert text.index("## Current Task") < text.index(REMINDERS_HEADING)


def test_guide_creation_selects_template_case_insensitively(kb) -> None:
    message = _render(kb, "guide-creation", topic="Orbit basics", guide_type="Product")
    assert message.description == "Website guide creation: Orbit basics (product)"
    assert "### Template: Product Education Guide" in message.text
    assert "**Topic:** Orbit basics\n**Guide Type:** product" in message.text


def test_guide_creation_defaults_to_condition(kb) -> None:
    message = _render(kb, "guide-creation", topic="hip flexor pain", guide_type=None)
    assert "### Template: Condition Guide" in message.text
    assert message.description.endswith("(condition)")


def test_guide_creation_falls_back_to_method_template(kb) -> None:
    text = _render(kb, "guide-creation", topic="posture", guide_type="listicle").text
    assert "### Template: Method/Educational Guide" in text
    assert "### Template: Condition Guide" not in text


def test_guide_creation_renders_schema_and_attribution(kb) -> None:
    text = _render(kb, "guide-creation", topic="hip flexor pain").text
    assert '"@type": "MedicalWebPage"' in text
    assert '"name": "Christine Annie, MPT"' in text
    assert '"url": "https://alethahealth.com/logo.png"' in text
    assert text.endswith("- Author attribution: Christine Annie, MPT on every guide")
    assert "{" + "brand}" not in text


def test_guide_creation_with_unreachable_backend(make_kb) -> None:
    kb = make_kb(provider=ClientProvider(_unavailable))
    text = _render(kb, "guide-creation", topic="hips").text
    assert (
        "Pre-loading failed. Use `get_kb_map` to find and load Brand Positioning, "
        "Writing Guidelines, Quick Claims Reference before starting."
    ) in text


def test_message_dict_shape(kb) -> None:
    data = _render(kb, "orientation").to_dict()
    assert data["description"] == "Aletha Health knowledge base orientation"
    assert data["messages"][0]["role"] == "user"
    assert data["messages"][0]["content"]["type"] == "text"


def test_guide_creation_without_topic_uses_generic_topic(kb) -> None:
    text = _render(kb, "guide-creation").text
    assert "**Topic:** a health/wellness topic" in text
