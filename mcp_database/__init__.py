"""MCP Database - MCP server fronting genai-toolbox with built-in database tools"""

__version__ = '1.0.0'

from .errors import ConfigError, McpDatabaseError, ProcessError, ToolInvocationError
from .models import Dialect, PrebuiltDatabase, ToolsConfig
from .config import generate_prebuilt_config, load_config
from .settings import TransportMode, TransportSettings
from .supervisor import ProcessState, ToolboxSupervisor
from .router import ToolRouter

__all__ = [
    'ConfigError',
    'McpDatabaseError',
    'ProcessError',
    'ToolInvocationError',
    'Dialect',
    'PrebuiltDatabase',
    'ToolsConfig',
    'generate_prebuilt_config',
    'load_config',
    'TransportMode',
    'TransportSettings',
    'ProcessState',
    'ToolboxSupervisor',
    'ToolRouter',
]
