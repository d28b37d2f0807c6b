"""Correction overlay parsed from the knowledge-base guide.

The guide shares the map's ``## <Section>`` convention. The ``Global``
section (any letter case) applies to every document; every other section
applies to documents whose catalog category has the same name.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from .catalog import SECTION_RE, TextLoader
from .roles import RoleResolver

logger = logging.getLogger(__name__)

GLOBAL_SECTION = "global"
_TITLE_RE = re.compile(r"^# ")


@dataclass(slots=True)
class ParsedGuide:
    """Global correction text plus per-category blocks in guide order."""

    global_text: str = ""
    categories: dict[str, str] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.global_text and not self.categories


def parse_guide(text: str) -> ParsedGuide:
    """Split ``text`` into the global block and category blocks."""

    guide = ParsedGuide()
    section = ""
    lines: list[str] = []

    def flush() -> None:
        body = "\n".join(lines).strip()
        if not body or not section:
            return
        if section.lower() == GLOBAL_SECTION:
            guide.global_text = body
        else:
            guide.categories[section] = body

    for line in text.splitlines():
        header = SECTION_RE.match(line)
        if header:
            flush()
            section = header.group(1).strip()
            lines = []
            continue
        if _TITLE_RE.match(line):
            continue
        lines.append(line)
    flush()
    return guide


class CorrectionGuide:
    """Lazily parsed correction overlay, cached independently of the map."""

    def __init__(self, loader: TextLoader, roles: RoleResolver) -> None:
        self._loader = loader
        self._roles = roles
        self._parsed: ParsedGuide | None = None
        self._loaded = False

    def _load(self) -> ParsedGuide | None:
        if self._loaded:
            return self._parsed
        try:
            text = self._loader()
        except OSError as exc:
            logger.warning("Knowledge-base guide unreadable, corrections disabled: %s", exc)
            text = None
        if text is None:
            logger.info("No knowledge-base guide configured; no corrections applied")
            parsed = None
        else:
            parsed = parse_guide(text)
        self._parsed = parsed
        self._loaded = True
        return parsed

    def parsed(self) -> ParsedGuide | None:
        return self._load()

    def overlay_for(self, document_id: str) -> str | None:
        """Return global plus category corrections relevant to ``document_id``."""
        guide = self._load()
        if guide is None:
            return None
        parts: list[str] = []
        if guide.global_text:
            parts.append("**Corrections (Global):**\n" + guide.global_text)
        category = self._roles.resolve_category(document_id)
        if category is not None and category in guide.categories:
            parts.append(f"**Corrections ({category}):**\n" + guide.categories[category])
        if not parts:
            return None
        return "\n\n".join(parts)

    def full_overlay(self) -> str | None:
        """Return every section for upfront injection into a prompt.

        Category sections follow the catalog's header order; sections that
        match no catalog category come last, in guide order.
        """
        guide = self._load()
        if guide is None or guide.is_empty():
            return None
        parts: list[str] = []
        if guide.global_text:
            parts.append("### Global\n" + guide.global_text)
        catalog_order = [c for c in self._roles.index.categories() if c in guide.categories]
        remaining = [c for c in guide.categories if c not in catalog_order]
        for category in catalog_order + remaining:
            parts.append(f"### {category}\n" + guide.categories[category])
        return "\n\n".join(parts)

    def unmatched_sections(self) -> list[str]:
        """Return category sections that no catalog header matches."""
        guide = self._load()
        if guide is None:
            return []
        known = set(self._roles.index.categories())
        return [name for name in guide.categories if name not in known]

    def reset(self) -> None:
        self._parsed = None
        self._loaded = False


__all__ = ["CorrectionGuide", "GLOBAL_SECTION", "ParsedGuide", "parse_guide"]
