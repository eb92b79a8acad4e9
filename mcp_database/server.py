"""
MCP front-end: serves the merged tool list over stdio while the toolbox runs.
"""

import asyncio
import logging
import signal
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from . import __version__
from .errors import ProcessError
from .models import Dialect, PrebuiltDatabase, ToolsConfig
from .router import ToolRouter
from .settings import TransportSettings
from .supervisor import ToolboxSupervisor

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-database"
SHUTDOWN_GRACE = 2.0


@dataclass
class ServerOptions:
    """Everything needed to start the toolbox and serve it."""
    binary_path: str
    config: ToolsConfig
    transport: TransportSettings = field(default_factory=TransportSettings)
    prebuilt: Optional[PrebuiltDatabase] = None
    env: Dict[str, str] = field(default_factory=dict)
    verbose: bool = False

    @property
    def dialect(self) -> Dialect:
        return self.config.dialect


def build_server(router: ToolRouter) -> Server:
    """Low-level MCP server whose handlers delegate to the router."""
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return await router.list_tools()

    # arguments go to the toolbox verbatim; it validates them itself
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
        envelope = await router.invoke(name, arguments)
        return types.CallToolResult.model_validate(envelope)

    return server


async def _run_stdio(server: Server):
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, stop_event: asyncio.Event) -> List[int]:
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            continue
        installed.append(sig)
    return installed


async def serve(options: ServerOptions):
    """
    Run until the MCP client disconnects, a shutdown signal arrives or the
    toolbox dies. The toolbox is stopped on every exit path.

    Raises:
        ProcessError: if the toolbox fails to start or dies while serving.
    """
    supervisor = ToolboxSupervisor(
        options.binary_path,
        options.config,
        transport=options.transport,
        prebuilt=options.prebuilt,
        env=options.env,
        verbose=options.verbose,
    )

    async with supervisor:
        router = ToolRouter(supervisor, options.dialect)
        server = build_server(router)
        logger.info(f"Serving {SERVER_NAME} {__version__} over stdio ({options.dialect.value} dialect)")

        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()
        installed = _install_signal_handlers(loop, stop_event)

        serve_task = asyncio.create_task(_run_stdio(server))
        stop_task = asyncio.create_task(stop_event.wait())
        failed_task = asyncio.create_task(supervisor.wait_failed())
        try:
            done, _ = await asyncio.wait(
                {serve_task, stop_task, failed_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            for task in (stop_task, failed_task):
                task.cancel()
            if not serve_task.done():
                serve_task.cancel()
                # stdin reads happen in a worker thread and may not notice cancellation
                await asyncio.wait({serve_task}, timeout=SHUTDOWN_GRACE)

        if stop_task in done:
            logger.info("Shutdown signal received")
        if failed_task in done:
            raise ProcessError(f"Toolbox failed while serving: {supervisor.last_error or 'unknown error'}")
        if serve_task in done:
            serve_task.result()
            logger.info("MCP client disconnected")
