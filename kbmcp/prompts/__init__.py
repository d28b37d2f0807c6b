"""Prompt workflows exposed through the MCP prompt surface."""

from .builder import PromptBuilder
from .workflows import (
    PromptArgument,
    PromptMessage,
    Workflow,
    get_workflow,
    list_workflows,
    render_workflow,
)

__all__ = [
    "PromptArgument",
    "PromptBuilder",
    "PromptMessage",
    "Workflow",
    "get_workflow",
    "list_workflows",
    "render_workflow",
]
