"""Mapping from catalog categories to the role a document plays."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from .catalog import CategoryIndex
from .model import RoleDescriptor


def _descriptor(category: str, label: str, instruction: str) -> tuple[str, RoleDescriptor]:
    return category, RoleDescriptor(category=category, label=label, instruction=instruction)


ROLE_DESCRIPTORS: Mapping[str, RoleDescriptor] = MappingProxyType(
    dict(
        [
            _descriptor(
                "Brand & Marketing",
                "MANDATORY CONSTRAINTS",
                "You MUST follow every rule in this document. "
                "These are brand standards, not suggestions.",
            ),
            _descriptor(
                "Customer Personas & Journeys",
                "CONTEXT",
                "Use this to understand your audience. "
                "Inform tone and framing from these insights.",
            ),
            _descriptor(
                "Clinical & Research",
                "REFERENCE — CITE ACCURATELY",
                "Use exact claims from this document. "
                "Never fabricate or paraphrase medical claims.",
            ),
            _descriptor(
                "Topic Articles & Blog Content",
                "REFERENCE ONLY — DO NOT COPY",
                "Use for tone and structure inspiration only. Do not copy verbatim.",
            ),
            _descriptor(
                "Product",
                "SOURCE OF TRUTH",
                "Use exact product names, usage instructions, "
                "and capabilities from this document.",
            ),
        ]
    )
)


class RoleResolver:
    """Resolve the :class:`RoleDescriptor` of a document through its category."""

    def __init__(
        self,
        index: CategoryIndex,
        descriptors: Mapping[str, RoleDescriptor] = ROLE_DESCRIPTORS,
    ) -> None:
        self.index = index
        self._descriptors = descriptors

    def resolve_category(self, document_id: str) -> str | None:
        return self.index.resolve_category(document_id)

    def resolve_role(self, document_id: str) -> RoleDescriptor | None:
        """Return the role of ``document_id``.

        ``None`` means "no role": the id is not in the catalog or its
        category has no descriptor. Both are ordinary outcomes.
        """
        category = self.index.resolve_category(document_id)
        if category is None:
            return None
        return self._descriptors.get(category)

    def descriptor_for(self, category: str) -> RoleDescriptor | None:
        return self._descriptors.get(category)

    def reset(self) -> None:
        self.index.reset()


__all__ = ["ROLE_DESCRIPTORS", "RoleResolver"]
