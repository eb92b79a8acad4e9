import os
import socket
import stat
import sys

import pytest
from mcp import types

from mcp_database.config import generate_prebuilt_config
from mcp_database.models import text_result
from mcp_database.supervisor import ToolboxSupervisor


class FakeChannel:
    """In-memory stand-in for a toolbox channel."""

    def __init__(self, args, open_error=None):
        self.args = args
        self.open_error = open_error
        self.on_exit = None
        self.alive = False
        self.close_calls = 0
        self.health_checks = 0
        self.calls = []

    async def open(self):
        if self.open_error is not None:
            raise self.open_error
        self.alive = True

    async def close(self):
        self.close_calls += 1
        self.alive = False

    def is_alive(self):
        return self.alive

    async def list_tools(self):
        return [types.Tool(name="execute_sql", description="Run SQL", inputSchema={"type": "object"})]

    async def call_tool(self, name, arguments):
        self.calls.append((name, arguments))
        return text_result(f"{name} ok")

    async def health_check(self):
        self.health_checks += 1
        return self.alive

    def die(self, reason="toolbox process exited with code 1"):
        self.alive = False
        if self.on_exit is not None:
            self.on_exit(reason)


class FakeChannelSupervisor(ToolboxSupervisor):
    """Supervisor that hands out FakeChannel instances instead of spawning the toolbox."""

    open_error = None

    def create_channel(self, args):
        self.fake_channel = FakeChannel(args, open_error=self.open_error)
        return self.fake_channel


@pytest.fixture
def sqlite_config():
    return generate_prebuilt_config("sqlite", {"SQLITE_DATABASE": "./my.db"})


@pytest.fixture
def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def make_script(tmp_path):
    """Write an executable shell script standing in for the toolbox binary."""
    if sys.platform == "win32":
        pytest.skip("shell scripts are not executable on Windows")

    def _make(body, name="toolbox"):
        path = tmp_path / name
        path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return _make


@pytest.fixture
def base_env():
    return {key: value for key, value in os.environ.items() if key == "PATH"}


@pytest.fixture
def fake_supervisor(sqlite_config, base_env):
    """Build FakeChannelSupervisor instances with test defaults."""

    def _make(config=None, open_error=None, **kwargs):
        kwargs.setdefault("env", base_env)
        supervisor = FakeChannelSupervisor("/opt/toolbox", config or sqlite_config, **kwargs)
        supervisor.open_error = open_error
        return supervisor

    return _make


@pytest.fixture
def fake_supervisor_type():
    """FakeChannelSupervisor subclass that records every instance it creates."""

    class RecordingSupervisor(FakeChannelSupervisor):
        instances = []

        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self.instances.append(self)

    return RecordingSupervisor


FAKE_TOOLBOX = '''
import os
import threading

from mcp.server.fastmcp import FastMCP

mcp = FastMCP("fake-toolbox")


@mcp.tool()
def execute_sql(sql: str) -> str:
    return f"ran: {sql}"


@mcp.tool()
def exit_soon() -> str:
    threading.Timer(0.3, os._exit, args=(1,)).start()
    return "ok"


if __name__ == "__main__":
    mcp.run()
'''


@pytest.fixture
def stdio_toolbox(tmp_path, make_script):
    """Executable that speaks MCP over stdio like `toolbox --stdio`."""
    server = tmp_path / "fake_toolbox.py"
    server.write_text(FAKE_TOOLBOX, encoding="utf-8")
    return make_script(f'exec "{sys.executable}" "{server}" "$@"')
