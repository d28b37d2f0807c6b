"""Structured prompt assembly.

Workflows add markdown blocks to named sections; nothing is concatenated
until :meth:`PromptBuilder.render`, which emits the sections in a fixed
order with the reminders block always last.
"""

from __future__ import annotations

from collections.abc import Iterable

SECTION_ORDER = ("preface", "loaded_context", "process", "checklist", "task")
REMINDERS_HEADING = "**REMINDERS — Do not ignore these:**"


class PromptBuilder:
    """Collect prompt blocks per section and serialise them in order."""

    def __init__(self) -> None:
        self._sections: dict[str, list[str]] = {name: [] for name in SECTION_ORDER}
        self._reminders: list[str] = []

    def add(self, section: str, block: str) -> PromptBuilder:
        """Append ``block`` to ``section``; empty blocks are ignored."""
        if section not in self._sections:
            raise KeyError(f"unknown prompt section: {section}")
        text = block.strip("\n")
        if text.strip():
            self._sections[section].append(text)
        return self

    def extend(self, section: str, blocks: Iterable[str]) -> PromptBuilder:
        for block in blocks:
            self.add(section, block)
        return self

    def remind(self, *items: str) -> PromptBuilder:
        """Add bullet items to the closing reminders block."""
        self._reminders.extend(item.strip() for item in items if item.strip())
        return self

    def blocks(self, section: str) -> list[str]:
        return list(self._sections[section])

    @property
    def reminders(self) -> list[str]:
        return list(self._reminders)

    def render(self) -> str:
        parts: list[str] = []
        for name in SECTION_ORDER:
            parts.extend(self._sections[name])
        if self._reminders:
            bullets = "\n".join(f"- {item}" for item in self._reminders)
            parts.append(f"---\n{REMINDERS_HEADING}\n{bullets}")
        return "\n\n".join(parts)


__all__ = ["PromptBuilder", "REMINDERS_HEADING", "SECTION_ORDER"]
