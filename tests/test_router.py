"""Tests for merging and dispatching tools through the router."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from mcp import types

from mcp_database.builtin_tools import builtin_tool_names
from mcp_database.errors import ToolInvocationError
from mcp_database.models import Dialect, text_result
from mcp_database.router import ToolRouter


def make_tool(name):
    return types.Tool(name=name, description=f"{name} tool", inputSchema={"type": "object", "properties": {}})


@pytest.fixture
def supervisor():
    fake = MagicMock()
    fake.list_remote_tools = AsyncMock(return_value=[make_tool("execute_sql"), make_tool("find_customer")])
    fake.invoke_remote = AsyncMock(return_value=text_result("ok"))
    return fake


@pytest.fixture
def router(supervisor):
    return ToolRouter(supervisor, Dialect.SQLITE)


class TestListTools:

    @pytest.mark.asyncio
    async def test_remote_tools_then_builtins(self, router):
        names = [tool.name for tool in await router.list_tools()]
        assert names == ["execute_sql", "find_customer"] + builtin_tool_names()

    @pytest.mark.asyncio
    async def test_colliding_remote_tool_is_hidden(self, router, supervisor):
        supervisor.list_remote_tools.return_value = [make_tool("list_tables"), make_tool("execute_sql")]

        names = [tool.name for tool in await router.list_tools()]

        assert names.count("list_tables") == 1
        assert names[0] == "execute_sql"

    @pytest.mark.asyncio
    async def test_listing_failure_propagates(self, router, supervisor):
        supervisor.list_remote_tools.side_effect = ToolInvocationError("Toolbox process is no longer running")
        with pytest.raises(ToolInvocationError):
            await router.list_tools()


class TestInvoke:

    @pytest.mark.asyncio
    async def test_builtin_goes_through_execute_sql(self, router, supervisor):
        result = await router.invoke("describe_table", {"table": "users"})

        supervisor.invoke_remote.assert_awaited_once_with("execute_sql", {"sql": "PRAGMA table_info(users)"})
        assert result == text_result("ok")

    @pytest.mark.asyncio
    async def test_builtin_uses_router_dialect(self, supervisor):
        router = ToolRouter(supervisor, Dialect.MYSQL)
        await router.invoke("count_rows", {"table": "users"})
        supervisor.invoke_remote.assert_awaited_once_with(
            "execute_sql", {"sql": "SELECT COUNT(*) as row_count FROM `users`"}
        )

    @pytest.mark.asyncio
    async def test_remote_tool_forwarded_verbatim(self, router, supervisor):
        arguments = {"email": "a@example.com", "extra": [1, 2]}

        result = await router.invoke("find_customer", arguments)

        supervisor.invoke_remote.assert_awaited_once_with("find_customer", arguments)
        assert result == text_result("ok")

    @pytest.mark.asyncio
    async def test_remote_error_envelope_returned_unchanged(self, router, supervisor):
        envelope = {"content": [{"type": "text", "text": "syntax error"}], "isError": True}
        supervisor.invoke_remote.return_value = envelope

        assert await router.invoke("execute_sql", {"sql": "SELEC 1"}) == envelope

    @pytest.mark.asyncio
    async def test_unknown_tool_is_error_without_round_trip(self, router, supervisor):
        await router.list_tools()

        result = await router.invoke("drop_everything", {})

        assert result["isError"] is True
        assert result["content"][0]["text"] == "Unknown tool: drop_everything"
        supervisor.invoke_remote.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_remote_names_loaded_on_first_use(self, router, supervisor):
        result = await router.invoke("nope", {})

        assert result["isError"] is True
        supervisor.list_remote_tools.assert_awaited_once()

        await router.invoke("find_customer", {})
        supervisor.list_remote_tools.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalid_builtin_arguments_become_error_envelope(self, router, supervisor):
        result = await router.invoke("preview_table", {"table": "users", "limit": "lots"})

        assert result["isError"] is True
        assert "limit must be a number" in result["content"][0]["text"]
        supervisor.invoke_remote.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dead_toolbox_becomes_error_envelope(self, router, supervisor):
        supervisor.invoke_remote.side_effect = ToolInvocationError("Toolbox process is no longer running")

        result = await router.invoke("find_customer", {})

        assert result == {
            "content": [{"type": "text", "text": "Toolbox process is no longer running"}],
            "isError": True,
        }

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_error_envelope(self, router, supervisor):
        supervisor.invoke_remote.side_effect = RuntimeError("boom")

        result = await router.invoke("list_tables", {})

        assert result["isError"] is True
        assert "boom" in result["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_missing_arguments_treated_as_empty(self, router, supervisor):
        await router.invoke("list_tables", None)
        supervisor.invoke_remote.assert_awaited_once_with(
            "execute_sql", {"sql": "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"}
        )
