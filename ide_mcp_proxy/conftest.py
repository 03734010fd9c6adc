"""
Shared pytest fixtures.

- fake_ide: in-memory probe answering per port, for resolver/cache tests
- ide_app / ide_calls / run_ide: a real aiohttp application mimicking the IDE tool API
- recording_session: stands in for the MCP client session behind the Notifier
"""

from typing import Any, Dict, List, Optional, Tuple

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from .change_detector import ChangeDetector, Notifier
from .probe import Endpoint, ProbeResult


class FakeIde:
    """Probe replacement: ports in `answers` respond with their payload."""

    def __init__(self, answers: Optional[Dict[int, str]] = None):
        self.answers = dict(answers or {})
        self.calls: List[Endpoint] = []

    @staticmethod
    def port_of(endpoint: Endpoint) -> int:
        return int(endpoint.url.rsplit(":", 1)[1].split("/")[0])

    def probed_ports(self) -> List[int]:
        return [self.port_of(e) for e in self.calls]

    async def __call__(self, session, endpoint: Endpoint) -> ProbeResult:
        self.calls.append(endpoint)
        port = self.port_of(endpoint)
        if port in self.answers:
            return ProbeResult(reachable=True, payload=self.answers[port], status_code=200)
        return ProbeResult(reachable=False)


class RecordingSession:
    def __init__(self):
        self.notifications = 0

    async def send_tool_list_changed(self):
        self.notifications += 1


@pytest.fixture
def fake_ide():
    return FakeIde()


@pytest.fixture
def recording_session():
    return RecordingSession()


@pytest.fixture
def detector(recording_session):
    notifier = Notifier()
    notifier.bind(recording_session)
    return ChangeDetector(notifier)


IDE_CALLS = web.AppKey("calls", list)


def make_ide_app(tools: Any = None, list_status: int = 200,
                 replies: Optional[Dict[str, Tuple[int, Any]]] = None) -> web.Application:
    """IDE tool API: GET /api/mcp/list_tools and POST /api/mcp/{name}."""
    app = web.Application()
    app[IDE_CALLS] = []
    replies = replies or {}

    async def list_tools(request):
        return web.json_response(tools if tools is not None else [], status=list_status)

    async def call_tool(request):
        name = request.match_info["name"]
        app[IDE_CALLS].append({
            "name": name,
            "arguments": await request.json(),
            "content_type": request.headers.get("Content-Type"),
        })
        status, body = replies.get(name, (404, {"status": None, "error": f"Unknown tool {name}"}))
        if isinstance(body, str):
            return web.Response(text=body, status=status)
        return web.json_response(body, status=status)

    app.router.add_get("/api/mcp/list_tools", list_tools)
    app.router.add_post("/api/mcp/{name}", call_tool)
    return app


@pytest.fixture
def ide_app():
    return make_ide_app


@pytest.fixture
def ide_calls():
    """POSTs received by an app built with make_ide_app."""
    return lambda app: app[IDE_CALLS]


async def _run_with_ide(app: web.Application, scenario):
    """Serve `app` on a free local port and run `scenario(port, session)` against it."""
    server = TestServer(app, host="127.0.0.1")
    await server.start_server()
    try:
        async with aiohttp.ClientSession() as session:
            return await scenario(server.port, session)
    finally:
        await server.close()


@pytest.fixture
def run_ide():
    return _run_with_ide
