"""
Transport settings for the supervised toolbox process.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Union

from .errors import ConfigError

DEFAULT_TOOLBOX_HOST = "127.0.0.1"
DEFAULT_TOOLBOX_PORT = 5000


class TransportMode(Enum):
    STDIO = "stdio"
    HTTP = "http"


@dataclass(frozen=True)
class TransportSettings:
    """How mcp-database talks to the toolbox process."""
    mode: TransportMode = TransportMode.STDIO
    host: str = DEFAULT_TOOLBOX_HOST
    port: int = DEFAULT_TOOLBOX_PORT

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"


def _parse_port(value: Union[str, int], origin: str) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid toolbox port from {origin}: {value!r}")
    if not 0 < port < 65536:
        raise ConfigError(f"Toolbox port from {origin} out of range: {port}")
    return port


def _parse_mode(value: str, origin: str) -> TransportMode:
    try:
        return TransportMode(value.strip().lower())
    except ValueError:
        raise ConfigError(f"Unsupported transport from {origin}: {value!r} (expected 'stdio' or 'http')")


def resolve_transport_settings(
    env: Mapping[str, str],
    cli_transport: Optional[str] = None,
    cli_stdio: Optional[bool] = None,
    cli_host: Optional[str] = None,
    cli_port: Optional[Union[str, int]] = None,
) -> TransportSettings:
    """
    Combine CLI flags and MCP_TOOLBOX_* variables, CLI first.

    Mode: --transport, then an explicit --stdio/--no-stdio, then
    MCP_TOOLBOX_TRANSPORT (stdio when nothing is given).
    """
    if cli_transport:
        mode = _parse_mode(cli_transport, "--transport")
    elif cli_stdio is not None:
        mode = TransportMode.STDIO if cli_stdio else TransportMode.HTTP
    elif env.get("MCP_TOOLBOX_TRANSPORT"):
        mode = _parse_mode(env["MCP_TOOLBOX_TRANSPORT"], "MCP_TOOLBOX_TRANSPORT")
    else:
        mode = TransportMode.STDIO

    host = cli_host or env.get("MCP_TOOLBOX_HOST") or DEFAULT_TOOLBOX_HOST

    if cli_port is not None and cli_port != "":
        port = _parse_port(cli_port, "--toolbox-port")
    elif env.get("MCP_TOOLBOX_PORT"):
        port = _parse_port(env["MCP_TOOLBOX_PORT"], "MCP_TOOLBOX_PORT")
    else:
        port = DEFAULT_TOOLBOX_PORT

    return TransportSettings(mode=mode, host=host, port=port)
