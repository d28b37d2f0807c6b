"""Tests for prompt assembly."""

from __future__ import annotations

import pytest

from kbmcp.prompts.builder import REMINDERS_HEADING, PromptBuilder

pytestmark = pytest.mark.unit


def test_sections_render_in_fixed_order_regardless_of_insertion() -> None:
    builder = PromptBuilder()
    builder.add("task", "TASK")
    builder.add("checklist", "CHECK")
    builder.add("preface", "PREFACE")
    builder.add("process", "PROCESS")
    builder.add("loaded_context", "CONTEXT")
    assert builder.render() == "PREFACE\n\nCONTEXT\n\nPROCESS\n\nCHECK\n\nTASK"


def test_reminders_always_render_last() -> None:
    builder = PromptBuilder()
    builder.remind("Stay on brand", "  ")
    builder.add("task", "Write the email")
    text = builder.render()
    assert text.endswith(f"---\n{REMINDERS_HEADING}\n- Stay on brand")
    assert text.index("Write the email") < text.index(REMINDERS_HEADING)
    assert builder.reminders == ["Stay on brand"]


def test_empty_blocks_are_skipped() -> None:
    builder = PromptBuilder()
    builder.extend("preface", ["", "\n\n", "kept"])
    assert builder.blocks("preface") == ["kept"]
    assert builder.render() == "kept"


def test_unknown_section_is_rejected() -> None:
    with pytest.raises(KeyError):
        PromptBuilder().add("epilogue", "text")
