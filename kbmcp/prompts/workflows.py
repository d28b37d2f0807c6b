"""Prompt workflows: preload critical documents and compose instructions.

Every workflow runs the same way: preload (never raises), compose with a
:class:`~kbmcp.prompts.builder.PromptBuilder`, deliver a
:class:`PromptMessage`. Nothing is kept between invocations.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..core.formatting import BLOCK_SEPARATOR, format_catalog
from ..core.model import PreloadResult
from ..core.roles import ROLE_DESCRIPTORS
from ..errors import UnknownWorkflowError
from ..settings import WorkflowSettings
from . import templates
from .builder import PromptBuilder

if TYPE_CHECKING:
    from ..services.knowledge_base import KnowledgeBase

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PromptMessage:
    """Rendered workflow output delivered as a single user message."""

    description: str
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "messages": [
                {"role": "user", "content": {"type": "text", "text": self.text}},
            ],
        }


@dataclass(frozen=True, slots=True)
class PromptArgument:
    name: str
    description: str
    required: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "required": self.required,
        }


WorkflowFunc = Callable[["KnowledgeBase", Mapping[str, str]], Awaitable[PromptMessage]]


@dataclass(frozen=True, slots=True)
class Workflow:
    """A registered prompt workflow."""

    name: str
    description: str
    func: WorkflowFunc
    arguments: tuple[PromptArgument, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "arguments": [arg.to_dict() for arg in self.arguments],
        }


_WORKFLOWS: dict[str, Workflow] = {}


def register_workflow(
    name: str,
    description: str,
    arguments: Sequence[PromptArgument] = (),
) -> Callable[[WorkflowFunc], WorkflowFunc]:
    """Decorator registering ``func`` as the workflow ``name``."""

    def decorator(func: WorkflowFunc) -> WorkflowFunc:
        _WORKFLOWS[name] = Workflow(name, description, func, tuple(arguments))
        return func

    return decorator


def get_workflow(name: str) -> Workflow:
    try:
        return _WORKFLOWS[name]
    except KeyError:
        raise UnknownWorkflowError(f"Unknown prompt: {name}") from None


def list_workflows() -> list[Workflow]:
    return list(_WORKFLOWS.values())


async def render_workflow(
    kb: KnowledgeBase,
    name: str,
    arguments: Mapping[str, Any] | None = None,
) -> PromptMessage:
    """Run the workflow ``name`` against ``kb``."""
    workflow = get_workflow(name)
    args = {
        str(key): str(value).strip()
        for key, value in (arguments or {}).items()
        if value is not None
    }
    logger.debug("Rendering prompt %s with arguments %s", name, sorted(args))
    return await workflow.func(kb, args)


# ---------------------------------------------------------------------------
# Shared composition helpers


def _failed_note(result: PreloadResult) -> str:
    if not result.failed:
        return ""
    ids = ", ".join(f"`{doc_id}`" for doc_id in result.failed_ids)
    return (
        f"> **Note:** {len(result.failed)} document(s) could not be pre-loaded. "
        f"Use `read_doc` with these IDs to load them manually: {ids}"
    )


def _manual_load_list(settings: WorkflowSettings) -> str:
    return "\n".join(
        f"{number}. **{doc.name}** (`{doc.id}`)"
        for number, doc in enumerate(settings.critical_documents, start=1)
    )


def _corrections_block(kb: KnowledgeBase) -> str:
    overlay = kb.guide.full_overlay()
    if not overlay:
        return ""
    return f"{templates.CORRECTIONS_HEADING}\n\n{overlay}"


def _add_loaded_context(
    builder: PromptBuilder,
    result: PreloadResult,
    heading: str,
    manual: str,
) -> None:
    if result.succeeded:
        builder.add("loaded_context", heading)
        builder.add("loaded_context", result.combined_text(BLOCK_SEPARATOR))
        builder.add("loaded_context", _failed_note(result))
    else:
        builder.add("loaded_context", manual)


def _role_summary() -> str:
    lines = [templates.ORIENTATION_ROLES_HEADING, ""]
    for descriptor in ROLE_DESCRIPTORS.values():
        lines.append(f"- **[{descriptor.label}]** {descriptor.category}: {descriptor.instruction}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Workflows


@register_workflow(
    "orientation",
    "Load the knowledge base map to understand available documents and how to use them",
    [
        PromptArgument(
            "task_context",
            "Optional: describe what you are working on to get relevant guidance",
        )
    ],
)
async def orientation(kb: KnowledgeBase, arguments: Mapping[str, str]) -> PromptMessage:
    ctx = templates.template_context(kb.settings.workflows)
    builder = PromptBuilder()
    builder.add("preface", templates.ORIENTATION_INTRO.format(**ctx))
    builder.add("preface", _role_summary())
    task_context = arguments.get("task_context", "")
    if task_context:
        builder.add("preface", templates.ORIENTATION_TASK.format(task_context=task_context))
    builder.add("loaded_context", format_catalog(kb.catalog_text(), str(kb.paths.map_path)))
    builder.add("loaded_context", _corrections_block(kb))
    builder.add("task", templates.ORIENTATION_CLOSING)
    return PromptMessage(
        description=f"{ctx['brand']} knowledge base orientation",
        text=builder.render(),
    )


@register_workflow(
    "marketing-creation",
    "Create marketing content with brand guidelines pre-loaded",
    [
        PromptArgument(
            "task",
            "What marketing content to create (e.g., 'email campaign for Hip Hook launch')",
            required=True,
        )
    ],
)
async def marketing_creation(kb: KnowledgeBase, arguments: Mapping[str, str]) -> PromptMessage:
    workflow = kb.settings.workflows
    ctx = templates.template_context(workflow)
    result = await kb.preloader.preload_critical(workflow.critical_ids)
    task = arguments.get("task") or "create marketing content"

    builder = PromptBuilder()
    builder.add("preface", templates.MARKETING_PREFACE.format(**ctx))
    _add_loaded_context(
        builder,
        result,
        templates.MARKETING_LOADED_HEADING,
        f"{templates.MARKETING_MANUAL_LOAD}\n{_manual_load_list(workflow)}",
    )
    builder.add("loaded_context", _corrections_block(kb))
    builder.add("loaded_context", templates.MARKETING_ADDITIONAL_CONTEXT.format(**ctx))
    builder.add("process", templates.MARKETING_SCOPE)
    builder.add("process", templates.MARKETING_PROCESS.format(**ctx))
    builder.add("checklist", templates.MARKETING_CHECKLIST.format(**ctx))
    builder.add("task", templates.MARKETING_TASK.format(task=task))
    builder.remind(*(item.format(**ctx) for item in templates.BRAND_REMINDERS))
    return PromptMessage(
        description=f"Marketing content creation: {task}",
        text=builder.render(),
    )


@register_workflow(
    "guide-creation",
    "Create an AEO/SEO-optimized website guide with brand guidelines pre-loaded",
    [
        PromptArgument("topic", "The guide topic (e.g., 'hip flexor pain')", required=True),
        PromptArgument(
            "guide_type",
            "Guide type: " + ", ".join(templates.GUIDE_TYPES),
        ),
    ],
)
async def guide_creation(kb: KnowledgeBase, arguments: Mapping[str, str]) -> PromptMessage:
    workflow = kb.settings.workflows
    ctx = templates.template_context(workflow)
    result = await kb.preloader.preload_critical(workflow.critical_ids)
    topic = arguments.get("topic") or "a health/wellness topic"
    guide_type = (arguments.get("guide_type") or templates.DEFAULT_GUIDE_TYPE).lower()

    documents = ", ".join(doc.name for doc in workflow.critical_documents)
    builder = PromptBuilder()
    builder.add("preface", templates.GUIDE_PREFACE.format(**ctx))
    _add_loaded_context(
        builder,
        result,
        templates.GUIDE_LOADED_HEADING,
        templates.GUIDE_MANUAL_LOAD.format(documents=documents),
    )
    builder.add("loaded_context", _corrections_block(kb))
    builder.add("loaded_context", templates.GUIDE_ADDITIONAL_CONTEXT)
    builder.add("process", templates.GUIDE_REQUIREMENTS.format(**ctx))
    builder.add("process", templates.GUIDE_SCHEMA.format(**ctx))
    builder.add("process", templates.guide_template(guide_type).format(**ctx))
    builder.add("process", templates.GUIDE_QUALITY.format(**ctx))
    builder.add("checklist", templates.GUIDE_CHECKLIST.format(**ctx))
    builder.add("task", templates.GUIDE_TASK.format(topic=topic, guide_type=guide_type))
    builder.remind(*(item.format(**ctx) for item in templates.GUIDE_REMINDERS))
    return PromptMessage(
        description=f"Website guide creation: {topic} ({guide_type})",
        text=builder.render(),
    )


__all__ = [
    "PromptArgument",
    "PromptMessage",
    "Workflow",
    "get_workflow",
    "list_workflows",
    "register_workflow",
    "render_workflow",
]
