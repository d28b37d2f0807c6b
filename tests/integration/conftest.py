"""Integration-test fixtures."""

from __future__ import annotations

import socket
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from kbmcp.mcp.server import app, bind, start_server, stop_server
from kbmcp.services.knowledge_base import KnowledgeBase
from kbmcp.sources import CONFIG_DIR_ENV, CONFIG_FILE_ENV
from tests.mcp_utils import _wait_until_ready

TOKEN = "secret"


@pytest.fixture
def free_tcp_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def client(kb: KnowledgeBase) -> Iterator[TestClient]:
    """HTTP client for the MCP app bound to the sample knowledge base."""
    bind(kb)
    try:
        yield TestClient(app)
    finally:
        bind(None)


@pytest.fixture
def mcp_server(
    kb: KnowledgeBase,
    tmp_path_factory: pytest.TempPathFactory,
    free_tcp_port: int,
) -> Iterator[tuple[int, Path]]:
    """Start the MCP server on a temporary port for the duration of a test."""

    port = free_tcp_port
    log_dir: Path = tmp_path_factory.mktemp("mcp-server")

    stop_server()
    start_server(kb, port=port, token=TOKEN, log_dir=log_dir)
    _wait_until_ready(port)

    try:
        yield port, log_dir
    finally:
        stop_server()


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (CONFIG_DIR_ENV, CONFIG_FILE_ENV, "KBMCP_ROOT_FOLDER_ID", "KBMCP_TOKEN", "KBMCP_PORT"):
        monkeypatch.delenv(name, raising=False)
