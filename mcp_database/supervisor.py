"""
Toolbox Supervisor - owns the toolbox process lifetime and its MCP channel
"""

import asyncio
import logging
import os
import tempfile
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from mcp import types

from .config import dump_config, parse_prebuilt, redact_config
from .errors import ConfigError, ProcessError, ToolInvocationError
from .models import PrebuiltDatabase, ToolsConfig
from .settings import TransportMode, TransportSettings
from .transport import HttpChannel, StdioChannel, ToolboxChannel

logger = logging.getLogger(__name__)


class ProcessState(Enum):
    UNINITIALIZED = "uninitialized"
    STARTING = "starting"
    READY = "ready"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"


class ToolboxSupervisor:
    """Starts the toolbox, keeps a session to it and tears everything down."""

    def __init__(
        self,
        binary_path: str,
        config: ToolsConfig,
        transport: Optional[TransportSettings] = None,
        prebuilt: Optional[Union[str, PrebuiltDatabase]] = None,
        env: Optional[Mapping[str, str]] = None,
        verbose: bool = False,
    ):
        self.binary_path = binary_path
        self.config = config
        self.transport = transport or TransportSettings()
        self.prebuilt = parse_prebuilt(prebuilt) if prebuilt else None
        self.env = dict(os.environ if env is None else env)
        self.verbose = verbose

        self.state = ProcessState.UNINITIALIZED
        self.channel: Optional[ToolboxChannel] = None
        self.config_path: Optional[str] = None
        self.started_at: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self._failed = asyncio.Event()

    def _set_state(self, state: ProcessState):
        if state == self.state:
            return
        logger.info(f"Toolbox state: {self.state.value} -> {state.value}")
        self.state = state
        if state == ProcessState.FAILED:
            logger.error(f"Toolbox failed: {self.get_status()}")
            self._failed.set()

    @property
    def is_ready(self) -> bool:
        return self.state == ProcessState.READY

    async def start(self):
        """
        Write the config, launch the toolbox and complete the MCP handshake.

        Raises:
            ProcessError: if already started, or the toolbox cannot be launched
                or reached. Anything acquired so far is released first.
        """
        if self.state != ProcessState.UNINITIALIZED:
            raise ProcessError(f"Toolbox supervisor cannot start from state '{self.state.value}'")

        self._set_state(ProcessState.STARTING)
        try:
            args = self._base_args()
            logger.info(f"Starting toolbox: {self.binary_path} {' '.join(args)} ({self.transport.mode.value})")
            self.channel = self.create_channel(args)
            self.channel.on_exit = self._on_channel_exit
            await self.channel.open()
        except asyncio.CancelledError:
            self._set_state(ProcessState.FAILED)
            await self._teardown()
            raise
        except Exception as e:
            self.last_error = str(e)
            self._set_state(ProcessState.FAILED)
            await self._teardown()
            if isinstance(e, (ConfigError, ProcessError)):
                raise
            raise ProcessError(f"Failed to start toolbox: {e}") from e

        self.started_at = datetime.now()
        self._set_state(ProcessState.READY)
        if self.verbose:
            logger.debug(f"Toolbox health: {await self.health_check()}")

    def _base_args(self) -> List[str]:
        self.config_path = self._write_config()
        if self.prebuilt is not None:
            return ["--prebuilt", self.prebuilt.value]
        if self.config_path is None:
            raise ProcessError("Could not write the toolbox configuration file")
        return ["--tools-file", self.config_path]

    def _write_config(self) -> Optional[str]:
        try:
            fd, path = tempfile.mkstemp(prefix="mcp-database-", suffix=".yaml")
        except OSError as e:
            logger.error(f"Failed to create temporary config file: {e}")
            return None

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(dump_config(self.config))
        except OSError as e:
            logger.error(f"Failed to write config to {path}: {e}")
            self._remove_file(path)
            return None

        logger.info(f"Wrote toolbox config to {path}")
        if self.verbose:
            rendered = yaml.safe_dump(redact_config(self.config), sort_keys=False)
            logger.debug(f"Toolbox config:\n{rendered}")
        return path

    def create_channel(self, args: List[str]) -> ToolboxChannel:
        if self.transport.mode == TransportMode.HTTP:
            return HttpChannel(self.binary_path, args, self.env, self.transport, verbose=self.verbose)
        return StdioChannel(self.binary_path, args, self.env)

    def _on_channel_exit(self, reason: str):
        if self.state == ProcessState.READY:
            self.last_error = reason
            self._set_state(ProcessState.FAILED)

    async def stop(self):
        """Terminate the toolbox and remove the temp config. Safe to call repeatedly."""
        if self.state in (ProcessState.STOPPING, ProcessState.STOPPED):
            return

        failed = self.state == ProcessState.FAILED
        if not failed:
            self._set_state(ProcessState.STOPPING)
        await self._teardown()
        if not failed:
            self._set_state(ProcessState.STOPPED)

    async def _teardown(self):
        channel, self.channel = self.channel, None
        if channel is not None:
            await channel.close()
        path, self.config_path = self.config_path, None
        if path is not None:
            self._remove_file(path)

    @staticmethod
    def _remove_file(path: str):
        try:
            os.remove(path)
            logger.debug(f"Removed temporary config {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove temporary config {path}: {e}")

    async def __aenter__(self) -> "ToolboxSupervisor":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    def _require_channel(self) -> ToolboxChannel:
        if self.state != ProcessState.READY or self.channel is None:
            raise ToolInvocationError(f"Toolbox is not available (state: {self.state.value})")
        if not self.channel.is_alive():
            self._on_channel_exit("toolbox connection lost")
            raise ToolInvocationError("Toolbox process is no longer running")
        return self.channel

    async def list_remote_tools(self) -> List[types.Tool]:
        """Tools advertised by the toolbox."""
        return await self._require_channel().list_tools()

    async def invoke_remote(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Forward a tool call to the toolbox and return its result envelope."""
        return await self._require_channel().call_tool(name, arguments or {})

    async def wait_failed(self):
        """Block until the supervisor enters the FAILED state."""
        await self._failed.wait()

    def get_status(self) -> Dict[str, Any]:
        status = {
            "state": self.state.value,
            "transport": self.transport.mode.value,
            "binary": self.binary_path,
            "prebuilt": self.prebuilt.value if self.prebuilt else None,
            "source_kind": self.config.active_source.kind,
            "config_path": self.config_path,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "uptime_seconds": (datetime.now() - self.started_at).total_seconds() if self.is_ready else 0,
            "last_error": self.last_error,
        }
        if self.transport.mode == TransportMode.HTTP:
            status["url"] = self.transport.base_url
        return status

    async def health_check(self) -> Dict[str, Any]:
        """Status plus a live probe of the toolbox."""
        status = self.get_status()
        healthy = False
        if self.is_ready and self.channel is not None:
            healthy = await self.channel.health_check()
        status["healthy"] = healthy
        return status
