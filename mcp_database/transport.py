"""
Transport channels to the toolbox process.

StdioChannel and HttpChannel expose the same operations (open, close,
list_tools, call_tool, is_alive, health_check), so the supervisor picks one
at startup and never branches on the transport mode afterwards.
"""

import asyncio
import logging
import sys
from contextlib import AsyncExitStack
from typing import Any, Callable, Dict, List, Optional, Sequence

import anyio
import httpx
from mcp import ClientSession, StdioServerParameters, types
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client
from mcp.shared.exceptions import McpError

from . import __version__
from .errors import ProcessError, ToolInvocationError
from .settings import TransportMode, TransportSettings

logger = logging.getLogger(__name__)

READY_POLL_ATTEMPTS = 20
READY_POLL_INTERVAL = 0.25
TERMINATE_TIMEOUT = 5.0
CLIENT_NAME = "mcp-database-proxy"

CLOSED_STREAM_ERRORS = (anyio.ClosedResourceError, anyio.BrokenResourceError, anyio.EndOfStream)


def result_to_envelope(result: types.CallToolResult) -> Dict[str, Any]:
    """Convert an SDK tool result into a plain result envelope."""
    envelope: Dict[str, Any] = {
        "content": [item.model_dump(mode="json", exclude_none=True) for item in result.content],
        "isError": bool(result.isError),
    }
    structured = getattr(result, "structuredContent", None)
    if structured is not None:
        envelope["structuredContent"] = structured
    return envelope


async def wait_for_port(
    host: str,
    port: int,
    attempts: int = READY_POLL_ATTEMPTS,
    interval: float = READY_POLL_INTERVAL,
    process: Optional[asyncio.subprocess.Process] = None,
):
    """
    Poll a TCP port until it accepts connections.

    Makes `attempts` connection attempts `interval` seconds apart and raises
    ProcessError when none succeeds, or as soon as `process` has exited.
    """
    for attempt in range(1, attempts + 1):
        if process is not None and process.returncode is not None:
            raise ProcessError(
                f"Toolbox exited with code {process.returncode} before listening on {host}:{port}",
                exit_code=process.returncode,
            )
        try:
            _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=interval)
        except asyncio.TimeoutError:
            # the attempt already used up its interval
            logger.debug(f"Toolbox not reachable on {host}:{port} (attempt {attempt}/{attempts}): timed out")
            continue
        except OSError as e:
            logger.debug(f"Toolbox not reachable on {host}:{port} (attempt {attempt}/{attempts}): {e}")
            await asyncio.sleep(interval)
            continue

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return

    raise ProcessError(f"Toolbox HTTP server not reachable on {host}:{port} after {attempts} attempts")


class ToolboxChannel:
    """An MCP client session to the toolbox over one transport."""

    mode: TransportMode

    def __init__(self, command: str, args: Sequence[str], env: Dict[str, str]):
        self.command = command
        self.args = list(args)
        self.env = dict(env)
        self.on_exit: Optional[Callable[[str], None]] = None
        self._stack: Optional[AsyncExitStack] = None
        self._session: Optional[ClientSession] = None
        self._closed = False

    async def open(self):
        raise NotImplementedError

    async def _handshake(self, read_stream, write_stream):
        session = await self._stack.enter_async_context(
            ClientSession(
                read_stream,
                write_stream,
                client_info=types.Implementation(name=CLIENT_NAME, version=__version__),
            )
        )
        await session.initialize()
        self._session = session

    def is_alive(self) -> bool:
        return self._session is not None and not self._closed

    def _mark_dead(self, reason: str):
        if self._closed:
            return
        self._closed = True
        logger.error(f"Toolbox {self.mode.value} channel lost: {reason}")
        if self.on_exit is not None:
            self.on_exit(reason)

    def _require_session(self) -> ClientSession:
        if not self.is_alive():
            raise ToolInvocationError("Toolbox connection is closed")
        return self._session

    async def list_tools(self) -> List[types.Tool]:
        session = self._require_session()
        try:
            result = await session.list_tools()
        except CLOSED_STREAM_ERRORS as e:
            self._mark_dead(f"connection closed ({type(e).__name__})")
            raise ToolInvocationError("Toolbox connection closed while listing tools") from e
        except McpError as e:
            if e.error.code == types.CONNECTION_CLOSED:
                self._mark_dead("connection closed")
            raise ToolInvocationError(f"Toolbox failed to list tools: {e.error.message}") from e
        return list(result.tools)

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        session = self._require_session()
        try:
            result = await session.call_tool(name, arguments)
        except CLOSED_STREAM_ERRORS as e:
            self._mark_dead(f"connection closed ({type(e).__name__})")
            raise ToolInvocationError(f"Toolbox connection closed while calling {name}") from e
        except McpError as e:
            if e.error.code == types.CONNECTION_CLOSED:
                self._mark_dead("connection closed")
            raise ToolInvocationError(f"Toolbox error calling {name}: {e.error.message}") from e
        return result_to_envelope(result)

    async def health_check(self) -> bool:
        raise NotImplementedError

    async def close(self):
        """Close the session and transport. Safe to call more than once."""
        self._closed = True
        self._session = None
        stack, self._stack = self._stack, None
        if stack is None:
            return
        try:
            await stack.aclose()
        except Exception as e:
            logger.warning(f"Error closing toolbox {self.mode.value} channel: {e}")


class StdioChannel(ToolboxChannel):
    """Toolbox launched with --stdio and attached through its standard streams."""

    mode = TransportMode.STDIO

    def __init__(self, command: str, args: Sequence[str], env: Dict[str, str]):
        super().__init__(command, args, env)
        self._relay: Optional[asyncio.Task] = None

    async def open(self):
        self._stack = AsyncExitStack()
        params = StdioServerParameters(command=self.command, args=self.args + ["--stdio"], env=self.env)
        read_stream, write_stream = await self._stack.enter_async_context(stdio_client(params, errlog=sys.stderr))
        # the session reads through a relay so an idle toolbox exiting is noticed too
        relay_send, relay_receive = anyio.create_memory_object_stream(0)
        self._relay = asyncio.create_task(self._relay_messages(read_stream, relay_send))
        await self._handshake(relay_receive, write_stream)
        logger.info("Connected to toolbox via stdio")

    async def _relay_messages(self, source, sink):
        try:
            async with sink:
                async for message in source:
                    await sink.send(message)
        except CLOSED_STREAM_ERRORS as e:
            logger.debug(f"Toolbox stdio relay stopped: {e!r}")
        self._mark_dead("toolbox stdout closed")

    async def health_check(self) -> bool:
        if not self.is_alive():
            return False
        try:
            await self._session.send_ping()
        except (McpError, *CLOSED_STREAM_ERRORS) as e:
            logger.warning(f"Toolbox ping failed: {e!r}")
            return False
        return True

    async def close(self):
        self._closed = True
        relay, self._relay = self._relay, None
        if relay is not None:
            relay.cancel()
            await asyncio.wait({relay})
        await super().close()


class HttpChannel(ToolboxChannel):
    """Toolbox launched as a detached HTTP server and reached over streamable HTTP."""

    mode = TransportMode.HTTP

    def __init__(
        self,
        command: str,
        args: Sequence[str],
        env: Dict[str, str],
        settings: TransportSettings,
        verbose: bool = False,
    ):
        super().__init__(command, args, env)
        self.settings = settings
        self.verbose = verbose
        self.process: Optional[asyncio.subprocess.Process] = None
        self._watcher: Optional[asyncio.Task] = None

    @property
    def url(self) -> str:
        return f"{self.settings.base_url}/mcp"

    async def open(self):
        host, port = self.settings.host, self.settings.port
        # stdout belongs to the MCP front-end, so toolbox output only ever goes to stderr
        output = sys.stderr if self.verbose else asyncio.subprocess.DEVNULL
        try:
            self.process = await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                "--address",
                host,
                "--port",
                str(port),
                env=self.env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=output,
                stderr=output,
            )
        except OSError as e:
            raise ProcessError(f"Failed to launch toolbox {self.command}: {e}") from e

        logger.info(f"Toolbox started (pid {self.process.pid}), waiting for {host}:{port}")
        await wait_for_port(host, port, process=self.process)

        self._stack = AsyncExitStack()
        read_stream, write_stream, _ = await self._stack.enter_async_context(streamablehttp_client(self.url))
        await self._handshake(read_stream, write_stream)
        self._watcher = asyncio.create_task(self._watch_process())
        logger.info(f"Connected to toolbox via HTTP on {host}:{port}")

    async def _watch_process(self):
        returncode = await self.process.wait()
        self._mark_dead(f"toolbox process exited with code {returncode}")

    def is_alive(self) -> bool:
        return (
            super().is_alive()
            and self.process is not None
            and self.process.returncode is None
        )

    async def health_check(self) -> bool:
        if not self.is_alive():
            return False
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self.settings.base_url}/api/toolset")
                return resp.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"Toolbox health check failed: {e}")
            return False

    async def close(self):
        watcher, self._watcher = self._watcher, None
        if watcher is not None:
            watcher.cancel()
        await super().close()
        await self._terminate()

    async def _terminate(self):
        process, self.process = self.process, None
        if process is None or process.returncode is not None:
            return
        try:
            process.terminate()
            await asyncio.wait_for(process.wait(), TERMINATE_TIMEOUT)
        except ProcessLookupError:
            return
        except asyncio.TimeoutError:
            logger.warning(f"Toolbox (pid {process.pid}) ignored SIGTERM, killing it")
            process.kill()
            await process.wait()
