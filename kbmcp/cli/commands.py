"""Command implementations for the CLI interface."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import dataclass
from typing import Callable

from ..backend.auth import resolve_token_path, run_oauth_flow
from ..backend.base import DocumentBackend
from ..backend.provider import ClientProvider
from ..errors import ConfigurationError, KnowledgeBaseError
from ..prompts import get_workflow, list_workflows, render_workflow
from ..services.knowledge_base import KnowledgeBase
from ..sources import KnowledgeSources


@dataclass
class Command:
    """Describe a CLI command and its argument handler."""

    func: Callable[[argparse.Namespace], int | None]
    help: str
    add_arguments: Callable[[argparse.ArgumentParser], None]


async def _offline_backend() -> DocumentBackend:
    raise ConfigurationError("offline mode: Google Drive access is disabled")


def _knowledge_base(args: argparse.Namespace, *, offline: bool = False) -> KnowledgeBase:
    if offline:
        return KnowledgeBase(
            args.app_settings,
            KnowledgeSources(args.config_paths),
            ClientProvider(_offline_backend),
        )
    return KnowledgeBase.from_settings(args.app_settings, args.config_paths)


def _write_json(data: object) -> None:
    sys.stdout.write(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True) + "\n")


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the MCP HTTP server in the foreground."""
    from ..mcp.server import serve

    mcp = args.app_settings.mcp
    token = args.token if args.token is not None else (mcp.token if mcp.require_token else "")
    serve(
        _knowledge_base(args),
        host=args.host or mcp.host,
        port=args.port or mcp.port,
        token=token,
        log_dir=args.log_dir or mcp.log_dir,
    )
    return 0


def add_serve_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``serve`` command."""
    p.add_argument("--host", help="interface to bind (default from settings)")
    p.add_argument("--port", type=int, help="TCP port (default from settings)")
    p.add_argument("--token", help="require this bearer token on every request")
    p.add_argument("--log-dir", help="directory for server request logs")


def cmd_auth(args: argparse.Namespace) -> int:
    """Authorise Drive access with the OAuth consent flow."""
    settings = args.app_settings
    token_path = resolve_token_path(settings, args.config_paths.token_path)
    try:
        run_oauth_flow(settings, token_path, open_browser=not args.no_browser)
    except ConfigurationError as exc:
        sys.stdout.write(f"{exc}\n")
        return 1
    sys.stdout.write(f"Authentication successful. Tokens saved to {token_path}\n")
    return 0


def add_auth_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``auth`` command."""
    p.add_argument(
        "--no-browser",
        action="store_true",
        help="print the consent URL instead of opening a browser",
    )


def cmd_role(args: argparse.Namespace) -> int:
    """Print the catalog category and role of a document id."""
    kb = _knowledge_base(args, offline=True)
    category = kb.roles.resolve_category(args.doc_id)
    role = kb.roles.resolve_role(args.doc_id)
    _write_json(
        {
            "id": args.doc_id,
            "category": category,
            "label": role.label if role else None,
            "instruction": role.instruction if role else None,
        }
    )
    return 0


def add_role_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``role`` command."""
    p.add_argument("doc_id", help="document id as listed in kb-map.md")


def _parse_prompt_args(values: list[str]) -> dict[str, str]:
    arguments: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(f"expected key=value, got {item!r}")
        arguments[key.strip()] = value
    return arguments


async def _render(kb: KnowledgeBase, name: str, arguments: dict[str, str]) -> str:
    try:
        message = await render_workflow(kb, name, arguments)
    finally:
        await kb.aclose()
    return message.text


def cmd_prompt(args: argparse.Namespace) -> int:
    """Render a prompt workflow to stdout."""
    if args.list:
        for workflow in list_workflows():
            names = ", ".join(arg.name for arg in workflow.arguments)
            sys.stdout.write(f"{workflow.name} ({names}): {workflow.description}\n")
        return 0
    if not args.name:
        sys.stdout.write("prompt name is required (use --list to see them)\n")
        return 2
    try:
        get_workflow(args.name)
        arguments = _parse_prompt_args(args.arg)
    except (KnowledgeBaseError, argparse.ArgumentTypeError) as exc:
        sys.stdout.write(f"{exc}\n")
        return 2
    kb = _knowledge_base(args, offline=args.offline)
    sys.stdout.write(asyncio.run(_render(kb, args.name, arguments)) + "\n")
    return 0


def add_prompt_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``prompt`` command."""
    p.add_argument("name", nargs="?", help="workflow name")
    p.add_argument(
        "--arg",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="workflow argument; may be repeated",
    )
    p.add_argument(
        "--offline",
        action="store_true",
        help="do not contact Google Drive; documents are listed for manual loading",
    )
    p.add_argument("--list", action="store_true", help="list available workflows")


def cmd_check(args: argparse.Namespace) -> int:
    """Validate settings and the operator-maintained knowledge-base files."""
    settings = args.app_settings
    kb = _knowledge_base(args, offline=True)
    problems: list[str] = []
    results: dict[str, object] = {"config_dir": str(args.config_paths.config_dir)}

    try:
        settings.require_drive_access()
    except ConfigurationError as exc:
        problems.append(str(exc))
    results["auth_type"] = settings.google.auth_type

    if kb.catalog_text() is None:
        problems.append(f"knowledge-base map not found at {kb.paths.map_path}")
    categories = kb.index.categories()
    results["categories"] = {
        category: sum(1 for entry in kb.index.entries() if entry.category == category)
        for category in categories
    }
    results["categories_without_role"] = [
        category for category in categories if kb.roles.descriptor_for(category) is None
    ]

    guide = kb.guide.parsed()
    results["guide"] = None
    if guide is not None:
        results["guide"] = {
            "global": bool(guide.global_text),
            "sections": list(guide.categories),
            "unmatched_sections": kb.guide.unmatched_sections(),
        }
        for section in kb.guide.unmatched_sections():
            problems.append(f"guide section '{section}' matches no map category")

    try:
        results["core_documents"] = len(kb.core_documents())
    except ConfigurationError as exc:
        problems.append(str(exc))

    results["problems"] = problems
    _write_json(results)
    return 1 if problems else 0


def add_check_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``check`` command."""


COMMANDS: dict[str, Command] = {
    "serve": Command(cmd_serve, "run the MCP server", add_serve_arguments),
    "auth": Command(cmd_auth, "authorise Google Drive access", add_auth_arguments),
    "role": Command(cmd_role, "show the role of a document", add_role_arguments),
    "prompt": Command(cmd_prompt, "render a prompt workflow", add_prompt_arguments),
    "check": Command(cmd_check, "validate settings and knowledge-base files", add_check_arguments),
}
