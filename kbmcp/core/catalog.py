"""Category index built from the human-maintained knowledge-base map.

The map is a markdown file whose ``## <Category>`` headers group entries
that embed an inline-code identifier::

    ## Brand & Marketing
    - **Brand Positioning** (id: `1LZ-4x4Z...`, Google Doc)

Parsing is lenient: lines that do not look like entries are ignored and an
identifier seen twice keeps the category of its last occurrence.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from .model import CatalogEntry

logger = logging.getLogger(__name__)

SECTION_RE = re.compile(r"^## (.+)$")
ENTRY_ID_RE = re.compile(r"id:\s*`([^`]+)`")

TextLoader = Callable[[], "str | None"]


@dataclass(frozen=True, slots=True)
class ParsedCatalog:
    """Identifier bindings plus the category headers in document order."""

    bindings: dict[str, str]
    categories: tuple[str, ...]


def parse_catalog(text: str) -> ParsedCatalog:
    """Return identifier → category bindings found in ``text``."""

    bindings: dict[str, str] = {}
    categories: list[str] = []
    current = ""
    for line in text.splitlines():
        section = SECTION_RE.match(line)
        if section:
            current = section.group(1).strip()
            if current and current not in categories:
                categories.append(current)
            continue
        entry = ENTRY_ID_RE.search(line)
        if entry and current:
            bindings[entry.group(1)] = current
    return ParsedCatalog(bindings=bindings, categories=tuple(categories))


class CategoryIndex:
    """Lazily parsed, resettable lookup from document id to category."""

    def __init__(self, loader: TextLoader) -> None:
        self._loader = loader
        self._parsed: ParsedCatalog | None = None

    def _load(self) -> ParsedCatalog:
        parsed = self._parsed
        if parsed is not None:
            return parsed
        try:
            text = self._loader()
        except OSError as exc:
            logger.warning("Knowledge-base map unreadable, roles disabled: %s", exc)
            text = None
        if text is None:
            logger.info("No knowledge-base map configured; documents carry no role")
            parsed = ParsedCatalog(bindings={}, categories=())
        else:
            parsed = parse_catalog(text)
            logger.debug(
                "Parsed knowledge-base map: %d ids in %d categories",
                len(parsed.bindings),
                len(parsed.categories),
            )
        self._parsed = parsed
        return parsed

    def resolve_category(self, document_id: str) -> str | None:
        """Return the category of ``document_id`` or ``None`` when unlisted."""
        return self._load().bindings.get(document_id)

    def categories(self) -> tuple[str, ...]:
        """Return category headers in the order the map declares them."""
        return self._load().categories

    def entries(self) -> list[CatalogEntry]:
        return [
            CatalogEntry(document_id=doc_id, category=category)
            for doc_id, category in self._load().bindings.items()
        ]

    def reset(self) -> None:
        """Forget the cached parse so the next lookup re-reads the map."""
        self._parsed = None


__all__ = ["CategoryIndex", "ParsedCatalog", "parse_catalog"]
