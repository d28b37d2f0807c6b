"""HTTP server exposing the knowledge base over MCP.

This module exposes a FastAPI application carrying the knowledge-base
tools, resources and prompts.  :func:`start_server` runs uvicorn in a
background thread; :func:`serve` runs it in the foreground for the CLI.
"""
from __future__ import annotations

import inspect
import threading
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..errors import KnowledgeBaseError, UnknownWorkflowError
from ..log import logger
from ..prompts import get_workflow, list_workflows, render_workflow
from ..services.knowledge_base import KnowledgeBase
from . import resources, tools
from .request_logging import (
    close_request_logging_handlers,
    configure_request_logging,
    log_call_event,
    log_request,
)
from .tool_registry import describe_tools
from .utils import ErrorCode, exception_to_mcp_error, mcp_error, tool_error


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    try:
        yield
    finally:
        kb: KnowledgeBase | None = app.state.knowledge_base
        if kb is not None:
            # The backend's HTTP client belongs to this event loop.
            await kb.aclose()


# FastAPI application that will host the MCP routes.
app = FastAPI(title="kbmcp", lifespan=_lifespan)
app.state.knowledge_base = None
app.state.expected_token = ""
app.state.log_dir = "."

_STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR.value: 400,
    ErrorCode.UNAUTHORIZED.value: 403,
    ErrorCode.NOT_FOUND.value: 404,
    ErrorCode.CONFIGURATION.value: 503,
    ErrorCode.INTERNAL.value: 502,
}


def bind(kb: KnowledgeBase | None, *, token: str = "") -> None:
    """Attach ``kb`` and the expected bearer token to :data:`app`."""
    app.state.knowledge_base = kb
    app.state.expected_token = token or ""


def _knowledge_base() -> KnowledgeBase:
    kb: KnowledgeBase | None = app.state.knowledge_base
    if kb is None:
        raise RuntimeError("knowledge base is not bound to the MCP app")
    return kb


def _error_response(payload: dict[str, Any], prefix: str = "") -> JSONResponse:
    error = payload["error"]
    if prefix:
        error["message"] = f"{prefix}{error['message']}"
    return JSONResponse(payload, status_code=_STATUS_BY_CODE.get(error["code"], 500))


_PUBLIC_PATHS = frozenset({"/health"})


def _authorized(request: Request) -> bool:
    token = app.state.expected_token
    if not token or request.url.path in _PUBLIC_PATHS:
        return True
    return request.headers.get("Authorization") == f"Bearer {token}"


@app.middleware("http")
async def access_middleware(request: Request, call_next):
    """Check the bearer token and write the access log entry."""
    request.state.request_id = uuid4().hex
    started = time.perf_counter()

    def elapsed_ms() -> float:
        return (time.perf_counter() - started) * 1000

    if not _authorized(request):
        log_request(request, 401, duration_ms=elapsed_ms())
        return JSONResponse(mcp_error(ErrorCode.UNAUTHORIZED, "unauthorized"), status_code=401)
    try:
        response = await call_next(request)
    except Exception as exc:  # pragma: no cover - framework guard
        log_request(request, 500, duration_ms=elapsed_ms(), error=f"{type(exc).__name__}: {exc}")
        raise
    log_request(request, response.status_code, duration_ms=elapsed_ms())
    return response


@app.get("/health")
async def health() -> dict[str, str]:
    """Report readiness information for external health probes."""
    return {"status": "ok"}


# Tools

ToolCallable = Callable[..., Awaitable[dict[str, Any]]]

_TOOLS: dict[str, ToolCallable] = {}


def register_tool(name: str | None = None) -> Callable[[ToolCallable], ToolCallable]:
    """Publish the decorated coroutine as tool *name* (its own name by default)."""

    def decorator(func: ToolCallable) -> ToolCallable:
        tool_name = name or func.__name__
        if tool_name in _TOOLS:
            raise ValueError(f"duplicate MCP tool registered: {tool_name}")
        _TOOLS[tool_name] = func
        return func

    return decorator


def registered_tools() -> list[str]:
    return list(_TOOLS)


@register_tool()
async def search_docs(
    query: str,
    file_type: str | None = None,
    folder_id: str | None = None,
    max_results: int | None = None,
) -> dict:
    """Search the knowledge base by keywords."""
    return await tools.search_docs(
        _knowledge_base(),
        query,
        file_type=file_type,
        folder_id=folder_id,
        max_results=max_results,
    )


@register_tool()
async def list_folder(
    folder_id: str | None = None,
    include_subfolders: bool = False,
) -> dict:
    """List a folder, the knowledge-base root by default."""
    return await tools.list_folder(
        _knowledge_base(),
        folder_id,
        include_subfolders=include_subfolders,
    )


@register_tool()
async def read_doc(doc_id: str, format: str | None = None) -> dict:
    """Read one document labelled with its role."""
    return await tools.read_doc(_knowledge_base(), doc_id, format=format)


@register_tool()
async def read_docs(doc_ids: Sequence[str], format: str | None = None) -> dict:
    """Read up to ten documents at once."""
    return await tools.read_docs(_knowledge_base(), doc_ids, format=format)


@register_tool()
async def list_core_docs() -> dict:
    return await tools.list_core_docs(_knowledge_base())


@register_tool()
async def get_kb_map() -> dict:
    return await tools.get_kb_map(_knowledge_base())


@register_tool()
async def get_kb_guide() -> dict:
    return await tools.get_kb_guide(_knowledge_base())


# --------------------------- MCP endpoints ---------------------------------


async def _json_body(request: Request) -> Mapping[str, Any] | JSONResponse:
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(
            mcp_error(ErrorCode.VALIDATION_ERROR, "invalid json"),
            status_code=400,
        )
    if not isinstance(body, Mapping):
        return JSONResponse(
            mcp_error(ErrorCode.VALIDATION_ERROR, "request body must be an object"),
            status_code=400,
        )
    return body


def _arguments(body: Mapping[str, Any]) -> Mapping[str, Any] | JSONResponse:
    arguments = body.get("arguments") or {}
    if not isinstance(arguments, Mapping):
        return JSONResponse(
            mcp_error(ErrorCode.VALIDATION_ERROR, "arguments must be an object"),
            status_code=400,
        )
    return arguments


def _unavailable() -> JSONResponse:
    return JSONResponse(
        mcp_error(ErrorCode.CONFIGURATION, "knowledge base not configured"),
        status_code=503,
    )


@app.get("/mcp/tools")
async def list_tools_endpoint() -> dict[str, Any]:
    return {"tools": describe_tools(registered_tools())}


@app.post("/mcp")
async def call_tool(request: Request) -> JSONResponse:
    """Invoke a registered MCP tool via HTTP."""
    request_id = getattr(request.state, "request_id", None)
    body = await _json_body(request)
    if isinstance(body, JSONResponse):
        return body
    arguments = _arguments(body)
    if isinstance(arguments, JSONResponse):
        return arguments

    name = body.get("name")
    if not isinstance(name, str):
        return JSONResponse(
            mcp_error(ErrorCode.VALIDATION_ERROR, "missing tool name"),
            status_code=400,
        )

    func = _TOOLS.get(name)
    if func is None:
        return JSONResponse(
            mcp_error(ErrorCode.NOT_FOUND, f"unknown tool: {name}"),
            status_code=404,
        )
    if app.state.knowledge_base is None:
        return _unavailable()

    try:
        pending = func(**arguments)
    except TypeError as exc:
        log_call_event(
            "tool", name, arguments, "invalid-arguments", request_id=request_id, error=str(exc)
        )
        return JSONResponse(
            mcp_error(ErrorCode.VALIDATION_ERROR, str(exc)),
            status_code=400,
        )
    try:
        result = await pending if inspect.isawaitable(pending) else pending
    except Exception as exc:
        logger.exception("Unhandled MCP tool failure for %s", name)
        log_call_event("tool", name, arguments, "error", request_id=request_id, error=str(exc))
        # Tool failures are always marked results, never transport errors.
        return JSONResponse(tool_error(exc))
    outcome = "error" if result.get("isError") else "ok"
    log_call_event("tool", name, arguments, outcome, request_id=request_id)
    return JSONResponse(result)


@app.get("/mcp/resources")
async def list_resources_endpoint() -> JSONResponse:
    if app.state.knowledge_base is None:
        return _unavailable()
    try:
        items = resources.list_resources(_knowledge_base())
    except KnowledgeBaseError as exc:
        return _error_response(exception_to_mcp_error(exc))
    return JSONResponse({"resources": items})


@app.post("/mcp/resources/read")
async def read_resource_endpoint(request: Request) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    body = await _json_body(request)
    if isinstance(body, JSONResponse):
        return body
    uri = body.get("uri")
    if not isinstance(uri, str) or not uri:
        return JSONResponse(
            mcp_error(ErrorCode.VALIDATION_ERROR, "missing resource uri"),
            status_code=400,
        )
    if app.state.knowledge_base is None:
        return _unavailable()
    try:
        result = await resources.read_resource(_knowledge_base(), uri)
    except KnowledgeBaseError as exc:
        log_call_event("resource", uri, None, "error", request_id=request_id, error=str(exc))
        return _error_response(exception_to_mcp_error(exc), "Failed to read resource: ")
    log_call_event("resource", uri, None, "ok", request_id=request_id)
    return JSONResponse(result)


@app.get("/mcp/prompts")
async def list_prompts_endpoint() -> dict[str, Any]:
    return {"prompts": [workflow.to_dict() for workflow in list_workflows()]}


@app.post("/mcp/prompts/get")
async def get_prompt_endpoint(request: Request) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    body = await _json_body(request)
    if isinstance(body, JSONResponse):
        return body
    arguments = _arguments(body)
    if isinstance(arguments, JSONResponse):
        return arguments
    name = body.get("name")
    if not isinstance(name, str):
        return JSONResponse(
            mcp_error(ErrorCode.VALIDATION_ERROR, "missing prompt name"),
            status_code=400,
        )
    try:
        get_workflow(name)
    except UnknownWorkflowError as exc:
        return _error_response(exception_to_mcp_error(exc))
    if app.state.knowledge_base is None:
        return _unavailable()
    try:
        message = await render_workflow(_knowledge_base(), name, arguments)
    except KnowledgeBaseError as exc:
        log_call_event("prompt", name, arguments, "error", request_id=request_id, error=str(exc))
        return _error_response(exception_to_mcp_error(exc))
    log_call_event("prompt", name, arguments, "ok", request_id=request_id)
    return JSONResponse(message.to_dict())


@dataclass
class _Background:
    server: uvicorn.Server
    thread: threading.Thread


_background: _Background | None = None


def is_running() -> bool:
    """Return ``True`` while the background server is up."""
    return _background is not None


def _prepare(
    kb: KnowledgeBase,
    host: str,
    port: int,
    token: str,
    log_dir: str | Path | None,
) -> uvicorn.Config:
    bind(kb, token=token)
    resolved_log_dir = configure_request_logging(log_dir)
    app.state.log_dir = str(resolved_log_dir)
    logger.info("MCP server listening on http://%s:%s (logs in %s)", host, port, resolved_log_dir)
    return uvicorn.Config(app, host=host, port=port, log_level="info")


def _run_logged(server: uvicorn.Server) -> None:
    try:
        server.run()
    except Exception:  # pragma: no cover - relies on uvicorn internals
        logger.exception("MCP server terminated with an unhandled exception")
        raise


def start_server(
    kb: KnowledgeBase,
    host: str = "127.0.0.1",
    port: int = 59363,
    token: str = "",
    *,
    log_dir: str | Path | None = None,
) -> None:
    """Serve *kb* from a daemon thread; does nothing when already running.

    A non-empty *token* is required as ``Authorization: Bearer <token>`` on
    every route except ``/health``.  Request logs go to *log_dir*, or to
    ``mcp/`` under the application log directory.
    """
    global _background

    if _background is not None:
        return
    server = uvicorn.Server(_prepare(kb, host, port, token, log_dir))
    # Signal handlers can only be installed from the main thread.
    server.install_signal_handlers = False
    thread = threading.Thread(target=_run_logged, args=(server,), name="kbmcp-server", daemon=True)
    _background = _Background(server, thread)
    thread.start()


def serve(
    kb: KnowledgeBase,
    host: str = "127.0.0.1",
    port: int = 59363,
    token: str = "",
    *,
    log_dir: str | Path | None = None,
) -> None:
    """Run the HTTP server in the foreground until interrupted."""
    config = _prepare(kb, host, port, token, log_dir)
    try:
        uvicorn.Server(config).run()
    finally:
        close_request_logging_handlers()
        bind(None)


def stop_server(timeout: float = 5.0) -> None:
    """Ask the background server to exit and wait up to *timeout* seconds."""
    global _background

    background, _background = _background, None
    if background is None:
        logger.info("MCP server stop requested but no server instance is active")
        return
    background.server.should_exit = True
    background.thread.join(timeout=timeout)
    if background.thread.is_alive():
        logger.warning("MCP server did not stop within %.1fs; forcing exit", timeout)
        background.server.force_exit = True
        background.thread.join(timeout=1.0)
    close_request_logging_handlers()
    bind(None)
    logger.info("MCP server stopped")


__all__ = [
    "app",
    "bind",
    "is_running",
    "register_tool",
    "registered_tools",
    "serve",
    "start_server",
    "stop_server",
]
