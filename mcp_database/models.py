"""
Data models for tools.yaml documents, SQL dialects and tool results.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import ConfigError

POSITIONAL_PARAM_PATTERN = re.compile(r"\$(\d+)")
NAMED_PARAM_PATTERN = re.compile(r"(?<![@\w])@([A-Za-z_]\w*)")


class PrebuiltDatabase(str, Enum):
    """Database types that can be started with --prebuilt."""
    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    MONGODB = "mongodb"
    REDIS = "redis"
    MSSQL = "mssql"
    CLOUD_SQL_POSTGRES = "cloud-sql-postgres"
    CLOUD_SQL_MYSQL = "cloud-sql-mysql"
    ALLOYDB_PG = "alloydb-pg"
    BIGQUERY = "bigquery"
    SPANNER = "spanner"
    FIRESTORE = "firestore"


class Dialect(Enum):
    """SQL flavor used to pick built-in tool templates and identifier quoting."""
    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    MSSQL = "mssql"
    DEFAULT = "default"

    @classmethod
    def from_kind(cls, kind: Optional[str]) -> "Dialect":
        """Map a source kind (or prebuilt type) to its dialect."""
        if not kind:
            return cls.DEFAULT
        return KIND_DIALECTS.get(kind.lower(), cls.DEFAULT)


KIND_DIALECTS: Dict[str, Dialect] = {
    "postgres": Dialect.POSTGRES,
    "cloud-sql-postgres": Dialect.POSTGRES,
    "alloydb-pg": Dialect.POSTGRES,
    "alloydb-postgres": Dialect.POSTGRES,
    "mysql": Dialect.MYSQL,
    "cloud-sql-mysql": Dialect.MYSQL,
    "sqlite": Dialect.SQLITE,
    "mssql": Dialect.MSSQL,
    "cloud-sql-mssql": Dialect.MSSQL,
}


class Parameter(BaseModel):
    """A tool parameter as declared in tools.yaml."""
    model_config = ConfigDict(extra="allow", frozen=True)

    name: str
    type: Literal["string", "number", "boolean", "array", "integer", "float", "map"]
    description: Optional[str] = None
    required: Optional[bool] = None


class SourceDescriptor(BaseModel):
    """A named connection target handed to the toolbox."""
    model_config = ConfigDict(extra="allow", frozen=True)

    name: str = Field(default="", exclude=True)
    kind: str
    host: Optional[str] = None
    port: Optional[Union[int, str]] = None
    database: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None


class ToolDescriptor(BaseModel):
    """A named, parameterized operation bound to one source."""
    model_config = ConfigDict(extra="allow", frozen=True)

    name: str = Field(default="", exclude=True)
    kind: str
    source: str
    description: str
    parameters: Optional[List[Parameter]] = None
    statement: Optional[str] = None

    def parameter_names(self) -> List[str]:
        return [param.name for param in self.parameters or []]

    def check_statement_parameters(self):
        """Ensure every parameter the statement references is declared."""
        if not self.statement:
            return

        declared = self.parameter_names()
        for index in POSITIONAL_PARAM_PATTERN.findall(self.statement):
            if not 1 <= int(index) <= len(declared):
                raise ValueError(
                    f"tool '{self.name}' references ${index} but declares {len(declared)} parameter(s)"
                )
        for name in NAMED_PARAM_PATTERN.findall(self.statement):
            if name not in declared:
                raise ValueError(f"tool '{self.name}' references undeclared parameter @{name}")


def _with_name(name: str, entry: Any) -> Any:
    if isinstance(entry, dict):
        return {**entry, "name": name}
    if isinstance(entry, BaseModel):
        return entry.model_copy(update={"name": name})
    return entry


class ToolsConfig(BaseModel):
    """A fully resolved tools.yaml document."""
    model_config = ConfigDict(frozen=True)

    sources: Dict[str, SourceDescriptor]
    tools: Optional[Dict[str, ToolDescriptor]] = None
    toolsets: Optional[Dict[str, List[str]]] = None

    @model_validator(mode="before")
    @classmethod
    def _attach_names(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for section in ("sources", "tools"):
            entries = data.get(section)
            if isinstance(entries, dict):
                data[section] = {key: _with_name(key, value) for key, value in entries.items()}
        return data

    @model_validator(mode="after")
    def _check_references(self) -> "ToolsConfig":
        if not self.sources:
            raise ValueError("at least one source is required")

        tools = self.tools or {}
        for tool in tools.values():
            if tool.source not in self.sources:
                raise ValueError(f"tool '{tool.name}' references unknown source '{tool.source}'")
            tool.check_statement_parameters()

        for toolset_name, tool_names in (self.toolsets or {}).items():
            unknown = [name for name in tool_names if name not in tools]
            if unknown:
                raise ValueError(
                    f"toolset '{toolset_name}' references unknown tool(s): {', '.join(unknown)}"
                )
        return self

    @classmethod
    def from_document(cls, document: Any) -> "ToolsConfig":
        """Validate a parsed document, raising ConfigError on any problem."""
        if not isinstance(document, dict):
            raise ConfigError("Configuration must be a mapping with a 'sources' key")
        try:
            return cls.model_validate(document)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @property
    def active_source(self) -> SourceDescriptor:
        return next(iter(self.sources.values()))

    @property
    def dialect(self) -> Dialect:
        return Dialect.from_kind(self.active_source.kind)

    def to_document(self) -> Dict[str, Any]:
        """Serializable form of the config, without unset fields."""
        return self.model_dump(exclude_none=True)


def text_result(text: str) -> Dict[str, Any]:
    """Successful tool result carrying a single text block."""
    return {"content": [{"type": "text", "text": text}], "isError": False}


def error_result(message: str) -> Dict[str, Any]:
    """Failed tool result carrying a human-readable message."""
    return {"content": [{"type": "text", "text": message}], "isError": True}
