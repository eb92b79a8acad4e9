"""
Error types raised by mcp-database.
"""

from typing import Optional


class McpDatabaseError(Exception):
    """Base class for all mcp-database errors."""


class ConfigError(McpDatabaseError):
    """Configuration file is malformed or structurally inconsistent."""


class ProcessError(McpDatabaseError):
    """Toolbox process failed to launch, become reachable, or stay alive."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


class BinaryNotFoundError(ProcessError):
    """No toolbox binary could be located."""


class ToolInvocationError(McpDatabaseError):
    """A tool call failed or was given malformed arguments."""
