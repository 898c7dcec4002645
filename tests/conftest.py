"""Shared test fixtures for the kvload test suite."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import socket
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterator


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


@pytest.fixture(autouse=True)
def _reset_kvload_logging() -> Iterator[None]:
    """Drop handlers bound to streams that CliRunner closes after a test."""
    yield
    logger = logging.getLogger("kvload")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


@dataclass
class StubServer:
    """Handle on a running stub key/value service."""

    host: str
    port: int
    requests: list[dict[str, str]] = field(default_factory=list)

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"


# =============================================================================
# Stub key/value service
# =============================================================================

_REQUESTS_KEY: web.AppKey[list[dict[str, str]]] = web.AppKey("requests", list)
_STORE_KEY: web.AppKey[dict[str, str]] = web.AppKey("store", dict)


async def _create_handler(request: web.Request) -> web.Response:
    form = await request.post()
    key = str(form.get("key", ""))
    value = str(form.get("value", ""))
    request.app[_REQUESTS_KEY].append(
        {
            "method": request.method,
            "path": request.path,
            "key": key,
            "value": value,
            "content_type": request.content_type,
        }
    )
    request.app[_STORE_KEY][key] = value
    return web.Response(text="OK")


async def _read_handler(request: web.Request) -> web.Response:
    key = request.query.get("key", "")
    request.app[_REQUESTS_KEY].append({"method": request.method, "path": request.path, "key": key})
    return web.Response(text=request.app[_STORE_KEY].get(key, ""))


async def _delete_handler(request: web.Request) -> web.Response:
    key = request.query.get("key", "")
    request.app[_REQUESTS_KEY].append({"method": request.method, "path": request.path, "key": key})
    request.app[_STORE_KEY].pop(key, None)
    return web.Response(text="OK")


async def _failing_handler(request: web.Request) -> web.Response:
    request.app[_REQUESTS_KEY].append({"method": request.method, "path": request.path})
    return web.Response(status=500, text="boom")


def _create_kv_app(requests: list[dict[str, str]]) -> web.Application:
    """Stub service answering 200 on every key/value route."""
    app = web.Application()
    app[_REQUESTS_KEY] = requests
    app[_STORE_KEY] = {}
    app.router.add_post("/create", _create_handler)
    app.router.add_get("/read", _read_handler)
    app.router.add_delete("/delete", _delete_handler)
    return app


def _create_failing_app(requests: list[dict[str, str]]) -> web.Application:
    """Stub service answering 500 on every route."""
    app = web.Application()
    app[_REQUESTS_KEY] = requests
    app.router.add_route("*", "/{tail:.*}", _failing_handler)
    return app


# =============================================================================
# Async fixtures
# =============================================================================


@contextlib.asynccontextmanager
async def _serve(
    app_factory: Callable[[list[dict[str, str]]], web.Application],
) -> AsyncIterator[StubServer]:
    server = StubServer(host="127.0.0.1", port=_get_free_port())
    runner = web.AppRunner(app_factory(server.requests))
    await runner.setup()
    site = web.TCPSite(runner, server.host, server.port)
    await site.start()
    try:
        yield server
    finally:
        await runner.cleanup()


@pytest.fixture
async def kv_server() -> AsyncIterator[StubServer]:
    """Stub key/value service on the test's event loop."""
    async with _serve(_create_kv_app) as server:
        yield server


@pytest.fixture
async def failing_server() -> AsyncIterator[StubServer]:
    """Stub service returning 500 for everything, on the test's event loop."""
    async with _serve(_create_failing_app) as server:
        yield server


# =============================================================================
# Sync fixtures for threaded worker tests
# =============================================================================


@contextlib.contextmanager
def _serve_in_thread(
    app_factory: Callable[[list[dict[str, str]]], web.Application],
) -> Iterator[StubServer]:
    """Run a stub service on a background event loop thread."""
    server = StubServer(host="127.0.0.1", port=_get_free_port())
    started = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []

    def _thread_target() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        runner = web.AppRunner(app_factory(server.requests))
        loop.run_until_complete(runner.setup())
        site = web.TCPSite(runner, server.host, server.port)
        loop.run_until_complete(site.start())
        loop_holder.append(loop)
        started.set()
        loop.run_forever()
        loop.run_until_complete(runner.cleanup())
        loop.close()

    thread = threading.Thread(target=_thread_target, name="stub-server", daemon=True)
    thread.start()
    started.wait(timeout=5.0)

    try:
        yield server
    finally:
        if loop_holder:
            loop_holder[0].call_soon_threadsafe(loop_holder[0].stop)
        thread.join(timeout=5.0)


@pytest.fixture
def sync_kv_server() -> Iterator[StubServer]:
    """Stub key/value service usable from blocking tests."""
    with _serve_in_thread(_create_kv_app) as server:
        yield server


@pytest.fixture
def sync_failing_server() -> Iterator[StubServer]:
    """Always-500 stub service usable from blocking tests."""
    with _serve_in_thread(_create_failing_app) as server:
        yield server
