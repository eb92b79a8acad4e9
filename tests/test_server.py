"""Tests for the MCP front-end handlers and the serve loop."""

import asyncio
import os
import signal
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest
from mcp import types

from mcp_database.builtin_tools import builtin_tool_names
from mcp_database.models import Dialect, error_result, text_result
from mcp_database.router import ToolRouter
from mcp_database.errors import ProcessError
from mcp_database.server import ServerOptions, build_server, serve
from mcp_database.supervisor import ProcessState


@pytest.fixture
def router():
    supervisor = MagicMock()
    supervisor.list_remote_tools = AsyncMock(
        return_value=[types.Tool(name="execute_sql", description="Run SQL", inputSchema={"type": "object"})]
    )
    supervisor.invoke_remote = AsyncMock(return_value=text_result("[]"))
    return ToolRouter(supervisor, Dialect.POSTGRES)


class TestBuildServer:

    @pytest.mark.asyncio
    async def test_list_tools_handler(self, router):
        server = build_server(router)
        handler = server.request_handlers[types.ListToolsRequest]

        response = await handler(types.ListToolsRequest(method="tools/list"))

        names = [tool.name for tool in response.root.tools]
        assert names == ["execute_sql"] + builtin_tool_names()

    @pytest.mark.asyncio
    async def test_call_tool_handler_returns_envelope(self, router):
        server = build_server(router)
        handler = server.request_handlers[types.CallToolRequest]
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name="list_schemas", arguments={}),
        )

        response = await handler(request)

        assert response.root.isError is False
        assert response.root.content[0].text == "[]"

    @pytest.mark.asyncio
    async def test_call_tool_handler_reports_errors(self, router):
        server = build_server(router)
        handler = server.request_handlers[types.CallToolRequest]
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name="describe_table", arguments={}),
        )

        response = await handler(request)

        assert response.root.isError is True
        assert response.root.content[0].text == error_result("table is required")["content"][0]["text"]


class TestServerOptions:

    def test_dialect_follows_active_source(self, sqlite_config):
        options = ServerOptions(binary_path="/opt/toolbox", config=sqlite_config)
        assert options.dialect == Dialect.SQLITE


@pytest.fixture
def options(sqlite_config, base_env):
    return ServerOptions(binary_path="/opt/toolbox", config=sqlite_config, env=base_env)


@pytest.fixture
def supervisors(monkeypatch, fake_supervisor_type):
    monkeypatch.setattr("mcp_database.server.ToolboxSupervisor", fake_supervisor_type)
    return fake_supervisor_type


class TestServe:
    """serve() with the toolbox and the stdio front-end replaced."""

    @pytest.mark.asyncio
    async def test_client_disconnect_stops_toolbox(self, options, supervisors, monkeypatch):
        seen = {}

        async def run_stdio(server):
            supervisor = supervisors.instances[0]
            seen["server"] = server
            seen["state"] = supervisor.state
            seen["config_path"] = supervisor.config_path

        monkeypatch.setattr("mcp_database.server._run_stdio", run_stdio)

        await serve(options)

        supervisor = supervisors.instances[0]
        assert seen["server"].name == "mcp-database"
        assert seen["state"] == ProcessState.READY
        assert supervisor.state == ProcessState.STOPPED
        assert supervisor.fake_channel.close_calls == 1
        assert not os.path.exists(seen["config_path"])

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="no loop signal handlers on Windows")
    async def test_shutdown_signal_stops_toolbox(self, options, supervisors, monkeypatch):
        cancelled = []

        async def run_stdio(server):
            os.kill(os.getpid(), signal.SIGTERM)
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

        monkeypatch.setattr("mcp_database.server._run_stdio", run_stdio)

        await asyncio.wait_for(serve(options), timeout=5)

        supervisor = supervisors.instances[0]
        assert cancelled == [True]
        assert supervisor.state == ProcessState.STOPPED
        assert supervisor.fake_channel.close_calls == 1

    @pytest.mark.asyncio
    async def test_toolbox_failure_is_fatal(self, options, supervisors, monkeypatch):
        seen = {}

        async def run_stdio(server):
            supervisor = supervisors.instances[0]
            seen["config_path"] = supervisor.config_path
            supervisor.fake_channel.die("toolbox process exited with code 1")
            await asyncio.Event().wait()

        monkeypatch.setattr("mcp_database.server._run_stdio", run_stdio)

        with pytest.raises(ProcessError, match="exited with code 1"):
            await asyncio.wait_for(serve(options), timeout=5)

        supervisor = supervisors.instances[0]
        assert supervisor.state == ProcessState.FAILED
        assert supervisor.fake_channel.close_calls == 1
        assert not os.path.exists(seen["config_path"])

    @pytest.mark.asyncio
    async def test_start_failure_never_serves(self, options, supervisors, monkeypatch):
        run_stdio = AsyncMock()
        monkeypatch.setattr("mcp_database.server._run_stdio", run_stdio)
        supervisors.open_error = ProcessError("Failed to launch toolbox /opt/toolbox")

        with pytest.raises(ProcessError, match="Failed to launch"):
            await serve(options)

        run_stdio.assert_not_called()
        assert supervisors.instances[0].state == ProcessState.FAILED
