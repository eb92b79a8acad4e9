"""
Tool Router - merges toolbox tools with the built-in catalog and dispatches calls
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Set

from mcp import types

from .builtin_tools import BUILTIN_TOOLS, EXECUTE_SQL_TOOL, BuiltinTool
from .errors import ToolInvocationError
from .models import Dialect, error_result
from .supervisor import ToolboxSupervisor

logger = logging.getLogger(__name__)


class ToolRouter:
    """Routes tool calls to a built-in handler or to the toolbox."""

    def __init__(
        self,
        supervisor: ToolboxSupervisor,
        dialect: Dialect,
        catalog: Sequence[BuiltinTool] = BUILTIN_TOOLS,
    ):
        self.supervisor = supervisor
        self.dialect = dialect
        self.catalog: Dict[str, BuiltinTool] = {tool.name: tool for tool in catalog}
        self._remote_names: Optional[Set[str]] = None

    async def list_tools(self) -> List[types.Tool]:
        """
        Toolbox tools followed by the built-in tools.

        Toolbox tools whose names collide with a built-in are hidden, since a
        call to that name always reaches the built-in.
        """
        remote = await self.supervisor.list_remote_tools()
        self._remote_names = {tool.name for tool in remote}

        merged: List[types.Tool] = []
        for tool in remote:
            if tool.name in self.catalog:
                logger.warning(f"Toolbox tool '{tool.name}' is shadowed by a built-in tool of the same name")
                continue
            merged.append(tool)
        merged.extend(tool.to_tool() for tool in self.catalog.values())
        return merged

    async def _execute_sql(self, sql: str) -> Dict[str, Any]:
        return await self.supervisor.invoke_remote(EXECUTE_SQL_TOOL, {"sql": sql})

    async def _is_unknown(self, name: str) -> bool:
        if self._remote_names is None:
            try:
                remote = await self.supervisor.list_remote_tools()
            except ToolInvocationError:
                # let the forwarded call surface the real failure
                return False
            self._remote_names = {tool.name for tool in remote}
        return name not in self._remote_names

    async def invoke(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Invoke a tool by name.

        Args:
            name: Built-in or toolbox tool name
            arguments: Tool arguments, forwarded verbatim to the toolbox

        Returns:
            Result envelope. Failures are reported with isError set, never raised.
        """
        arguments = arguments or {}
        try:
            builtin = self.catalog.get(name)
            if builtin is not None:
                return await builtin.run(arguments, self.dialect, self._execute_sql)

            if await self._is_unknown(name):
                return error_result(f"Unknown tool: {name}")
            return await self.supervisor.invoke_remote(name, arguments)
        except ToolInvocationError as e:
            logger.warning(f"Tool {name} failed: {e}")
            return error_result(str(e))
        except Exception as e:
            logger.exception(f"Unexpected error invoking tool {name}")
            return error_result(f"Error invoking {name}: {e}")
