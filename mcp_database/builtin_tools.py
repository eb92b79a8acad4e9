"""
Built-in database tools.

Each tool renders a dialect-specific SQL statement and runs it through the
toolbox's execute_sql tool. Tools accept identifiers (table, column and schema
names), not data values; identifiers are quoted per dialect and embedded in
the statement text.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from mcp import types

from .errors import ToolInvocationError
from .models import Dialect, Parameter

logger = logging.getLogger(__name__)

EXECUTE_SQL_TOOL = "execute_sql"
MIN_LIMIT = 1
MAX_LIMIT = 100
DEFAULT_SCHEMA = "public"

PLAIN_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

ExecuteSQL = Callable[[str], Awaitable[Dict[str, Any]]]
Template = Callable[[Dict[str, Any]], str]


def quote_identifier(name: str, dialect: Dialect) -> str:
    """Quote an identifier: backticks for MySQL, brackets for MSSQL, double quotes otherwise."""
    if dialect is Dialect.MYSQL:
        return "`" + name.replace("`", "``") + "`"
    if dialect is Dialect.MSSQL:
        return "[" + name.replace("]", "]]") + "]"
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def qualified_table(table: str, schema: Optional[str], dialect: Dialect) -> str:
    """Table reference, schema-prefixed unless the schema is the default one."""
    if dialect is Dialect.SQLITE or not schema or schema == DEFAULT_SCHEMA:
        return quote_identifier(table, dialect)
    return f"{quote_identifier(schema, dialect)}.{quote_identifier(table, dialect)}"


def clamp_limit(value: Any, default: int) -> int:
    """Clamp a requested row limit into [1, 100]; missing or zero means default."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ToolInvocationError(f"limit must be a number, got {value!r}")
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        raise ToolInvocationError(f"limit must be a number, got {value!r}")
    if number == 0:
        return default
    return min(max(MIN_LIMIT, number), MAX_LIMIT)


def _schema(args: Dict[str, Any]) -> str:
    return args.get("schema") or DEFAULT_SCHEMA


def _pragma_target(table: str) -> str:
    if PLAIN_IDENTIFIER.fullmatch(table):
        return table
    return quote_identifier(table, Dialect.SQLITE)


def _mssql_schema_filter(args: Dict[str, Any], column: str = "TABLE_SCHEMA") -> str:
    schema = args.get("schema")
    return f" AND {column} = {quote_literal(schema)}" if schema else ""


@dataclass(frozen=True)
class BuiltinTool:
    """A compiled-in tool backed by per-dialect SQL templates."""
    name: str
    description: str
    parameters: List[Parameter]
    templates: Dict[Dialect, Template]
    limit_default: int = 5

    def input_schema(self) -> Dict[str, Any]:
        properties = {
            param.name: {"type": param.type, "description": param.description}
            for param in self.parameters
        }
        schema: Dict[str, Any] = {"type": "object", "properties": properties}
        required = [param.name for param in self.parameters if param.required]
        if required:
            schema["required"] = required
        return schema

    def to_tool(self) -> types.Tool:
        return types.Tool(name=self.name, description=self.description, inputSchema=self.input_schema())

    def validate_arguments(self, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Check required parameters and types, returning normalized values."""
        arguments = arguments or {}
        values: Dict[str, Any] = {}
        for param in self.parameters:
            value = arguments.get(param.name)
            if param.type == "number":
                values[param.name] = clamp_limit(value, self.limit_default)
                continue
            if value is None or value == "":
                if param.required:
                    raise ToolInvocationError(f"{param.name} is required")
                values[param.name] = None
                continue
            if not isinstance(value, str):
                raise ToolInvocationError(f"{param.name} must be a string")
            values[param.name] = value
        return values

    def render(self, arguments: Optional[Dict[str, Any]], dialect: Dialect) -> str:
        """Build the SQL statement for the given dialect."""
        values = self.validate_arguments(arguments)
        template = self.templates.get(dialect, self.templates[Dialect.DEFAULT])
        return template(values)

    async def run(
        self,
        arguments: Optional[Dict[str, Any]],
        dialect: Dialect,
        execute_sql: ExecuteSQL,
    ) -> Dict[str, Any]:
        sql = self.render(arguments, dialect)
        logger.debug(f"Built-in tool {self.name} ({dialect.value}): {sql}")
        return await execute_sql(sql)


SCHEMA_PARAM = Parameter(
    name="schema",
    type="string",
    description="Schema name (PostgreSQL/MSSQL only, default: public)",
)


def _table_param(description: str = "Name of the table") -> Parameter:
    return Parameter(name="table", type="string", description=description, required=True)


BUILTIN_TOOLS: List[BuiltinTool] = [
    BuiltinTool(
        name="list_databases",
        description="List all databases available on the server",
        parameters=[],
        templates={
            Dialect.POSTGRES: lambda a: "SELECT datname FROM pg_database WHERE datistemplate = false ORDER BY datname",
            Dialect.MYSQL: lambda a: "SHOW DATABASES",
            Dialect.SQLITE: lambda a: "PRAGMA database_list",
            Dialect.MSSQL: lambda a: "SELECT name FROM sys.databases ORDER BY name",
            Dialect.DEFAULT: lambda a: "SELECT datname FROM pg_database ORDER BY datname",
        },
    ),
    BuiltinTool(
        name="list_schemas",
        description="List all schemas in the current database (PostgreSQL/MSSQL). For MySQL, this lists databases.",
        parameters=[],
        templates={
            Dialect.POSTGRES: lambda a: (
                "SELECT schema_name FROM information_schema.schemata "
                "WHERE schema_name NOT IN ('pg_catalog', 'information_schema', 'pg_toast') ORDER BY schema_name"
            ),
            Dialect.MYSQL: lambda a: "SHOW DATABASES",
            Dialect.SQLITE: lambda a: "SELECT 'main' as schema_name",
            Dialect.MSSQL: lambda a: (
                "SELECT SCHEMA_NAME FROM INFORMATION_SCHEMA.SCHEMATA "
                "WHERE SCHEMA_NAME NOT IN ('guest', 'INFORMATION_SCHEMA', 'sys') ORDER BY SCHEMA_NAME"
            ),
            Dialect.DEFAULT: lambda a: "SELECT schema_name FROM information_schema.schemata ORDER BY schema_name",
        },
    ),
    BuiltinTool(
        name="schema_info",
        description="Get table, view and routine counts for a schema (PostgreSQL/MSSQL)",
        parameters=[
            Parameter(name="schema", type="string", description="Name of the schema (default: public)"),
        ],
        templates={
            Dialect.POSTGRES: lambda a: (
                f"SELECT {quote_literal(_schema(a))} as schema_name, "
                f"(SELECT COUNT(*) FROM information_schema.tables WHERE table_schema = {quote_literal(_schema(a))} "
                f"AND table_type = 'BASE TABLE') as table_count, "
                f"(SELECT COUNT(*) FROM information_schema.views WHERE table_schema = {quote_literal(_schema(a))}) as view_count, "
                f"(SELECT COUNT(*) FROM information_schema.routines WHERE routine_schema = {quote_literal(_schema(a))}) as routine_count"
            ),
            Dialect.MSSQL: lambda a: (
                f"SELECT {quote_literal(_schema(a))} as schema_name, "
                f"(SELECT COUNT(*) FROM INFORMATION_SCHEMA.TABLES WHERE TABLE_SCHEMA = {quote_literal(_schema(a))} "
                f"AND TABLE_TYPE = 'BASE TABLE') as table_count, "
                f"(SELECT COUNT(*) FROM INFORMATION_SCHEMA.VIEWS WHERE TABLE_SCHEMA = {quote_literal(_schema(a))}) as view_count, "
                f"(SELECT COUNT(*) FROM INFORMATION_SCHEMA.ROUTINES WHERE ROUTINE_SCHEMA = {quote_literal(_schema(a))}) as routine_count"
            ),
            Dialect.DEFAULT: lambda a: (
                f"SELECT {quote_literal(_schema(a))} as schema_name, 0 as table_count, 0 as view_count, 0 as routine_count"
            ),
        },
    ),
    BuiltinTool(
        name="list_tables",
        description="List all tables in a schema (PostgreSQL/MSSQL) or database (MySQL/SQLite)",
        parameters=[SCHEMA_PARAM],
        templates={
            Dialect.POSTGRES: lambda a: (
                "SELECT table_name FROM information_schema.tables "
                f"WHERE table_schema = {quote_literal(_schema(a))} ORDER BY table_name"
            ),
            Dialect.MYSQL: lambda a: "SHOW TABLES",
            Dialect.SQLITE: lambda a: "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name",
            Dialect.MSSQL: lambda a: (
                "SELECT TABLE_NAME FROM INFORMATION_SCHEMA.TABLES WHERE TABLE_TYPE = 'BASE TABLE'"
                f"{_mssql_schema_filter(a)} ORDER BY TABLE_NAME"
            ),
            Dialect.DEFAULT: lambda a: (
                "SELECT table_name FROM information_schema.tables "
                f"WHERE table_schema = {quote_literal(_schema(a))} ORDER BY table_name"
            ),
        },
    ),
    BuiltinTool(
        name="describe_table",
        description="Get the structure of a table including column names, data types, and constraints",
        parameters=[_table_param("Name of the table to describe"), SCHEMA_PARAM],
        templates={
            Dialect.POSTGRES: lambda a: (
                "SELECT column_name, data_type, is_nullable, column_default FROM information_schema.columns "
                f"WHERE table_schema = {quote_literal(_schema(a))} AND table_name = {quote_literal(a['table'])} "
                "ORDER BY ordinal_position"
            ),
            Dialect.MYSQL: lambda a: f"DESCRIBE {quote_identifier(a['table'], Dialect.MYSQL)}",
            Dialect.SQLITE: lambda a: f"PRAGMA table_info({_pragma_target(a['table'])})",
            Dialect.MSSQL: lambda a: (
                "SELECT COLUMN_NAME, DATA_TYPE, IS_NULLABLE, COLUMN_DEFAULT FROM INFORMATION_SCHEMA.COLUMNS "
                f"WHERE TABLE_NAME = {quote_literal(a['table'])}{_mssql_schema_filter(a)} ORDER BY ORDINAL_POSITION"
            ),
            Dialect.DEFAULT: lambda a: (
                "SELECT column_name, data_type, is_nullable FROM information_schema.columns "
                f"WHERE table_schema = {quote_literal(_schema(a))} AND table_name = {quote_literal(a['table'])}"
            ),
        },
    ),
    BuiltinTool(
        name="preview_table",
        description="Preview the first few rows of a table (default: 5 rows)",
        parameters=[
            _table_param("Name of the table to preview"),
            SCHEMA_PARAM,
            Parameter(name="limit", type="number", description="Number of rows to return (default: 5, max: 100)"),
        ],
        limit_default=5,
        templates={
            Dialect.POSTGRES: lambda a: (
                f"SELECT * FROM {qualified_table(a['table'], a['schema'], Dialect.POSTGRES)} LIMIT {a['limit']}"
            ),
            Dialect.MYSQL: lambda a: (
                f"SELECT * FROM {qualified_table(a['table'], a['schema'], Dialect.MYSQL)} LIMIT {a['limit']}"
            ),
            Dialect.SQLITE: lambda a: (
                f"SELECT * FROM {qualified_table(a['table'], None, Dialect.SQLITE)} LIMIT {a['limit']}"
            ),
            Dialect.MSSQL: lambda a: (
                f"SELECT TOP {a['limit']} * FROM {qualified_table(a['table'], a['schema'], Dialect.MSSQL)}"
            ),
            Dialect.DEFAULT: lambda a: (
                f"SELECT * FROM {qualified_table(a['table'], a['schema'], Dialect.DEFAULT)} LIMIT {a['limit']}"
            ),
        },
    ),
    BuiltinTool(
        name="count_rows",
        description="Count the total number of rows in a table",
        parameters=[_table_param("Name of the table to count rows"), SCHEMA_PARAM],
        templates={
            Dialect.POSTGRES: lambda a: (
                f"SELECT COUNT(*) as row_count FROM {qualified_table(a['table'], a['schema'], Dialect.POSTGRES)}"
            ),
            Dialect.MYSQL: lambda a: (
                f"SELECT COUNT(*) as row_count FROM {qualified_table(a['table'], a['schema'], Dialect.MYSQL)}"
            ),
            Dialect.SQLITE: lambda a: (
                f"SELECT COUNT(*) as row_count FROM {qualified_table(a['table'], None, Dialect.SQLITE)}"
            ),
            Dialect.MSSQL: lambda a: (
                f"SELECT COUNT(*) as row_count FROM {qualified_table(a['table'], a['schema'], Dialect.MSSQL)}"
            ),
            Dialect.DEFAULT: lambda a: (
                f"SELECT COUNT(*) as row_count FROM {qualified_table(a['table'], a['schema'], Dialect.DEFAULT)}"
            ),
        },
    ),
    BuiltinTool(
        name="table_stats",
        description="Get statistics for a table including row count and column count",
        parameters=[_table_param("Name of the table to get statistics for"), SCHEMA_PARAM],
        templates={
            Dialect.POSTGRES: lambda a: (
                "SELECT (SELECT COUNT(*) FROM information_schema.columns "
                f"WHERE table_schema = {quote_literal(_schema(a))} AND table_name = {quote_literal(a['table'])}) as column_count, "
                f"(SELECT COUNT(*) FROM {qualified_table(a['table'], a['schema'], Dialect.POSTGRES)}) as row_count"
            ),
            Dialect.MYSQL: lambda a: (
                "SELECT (SELECT COUNT(*) FROM information_schema.columns "
                f"WHERE table_name = {quote_literal(a['table'])}) as column_count, "
                f"(SELECT COUNT(*) FROM {qualified_table(a['table'], a['schema'], Dialect.MYSQL)}) as row_count"
            ),
            Dialect.SQLITE: lambda a: (
                f"SELECT (SELECT COUNT(*) FROM pragma_table_info({quote_literal(a['table'])})) as column_count, "
                f"(SELECT COUNT(*) FROM {qualified_table(a['table'], None, Dialect.SQLITE)}) as row_count"
            ),
            Dialect.MSSQL: lambda a: (
                "SELECT (SELECT COUNT(*) FROM INFORMATION_SCHEMA.COLUMNS "
                f"WHERE TABLE_NAME = {quote_literal(a['table'])}{_mssql_schema_filter(a)}) as column_count, "
                f"(SELECT COUNT(*) FROM {qualified_table(a['table'], a['schema'], Dialect.MSSQL)}) as row_count"
            ),
            Dialect.DEFAULT: lambda a: (
                f"SELECT COUNT(*) as row_count FROM {qualified_table(a['table'], a['schema'], Dialect.DEFAULT)}"
            ),
        },
    ),
    BuiltinTool(
        name="search_tables",
        description="Search for tables by name pattern",
        parameters=[
            Parameter(
                name="pattern",
                type="string",
                description='Search pattern (e.g., "user" will match "users", "user_profiles")',
                required=True,
            ),
            Parameter(
                name="schema",
                type="string",
                description="Schema name to search in (PostgreSQL/MSSQL only, default: public)",
            ),
        ],
        templates={
            Dialect.POSTGRES: lambda a: (
                "SELECT table_name FROM information_schema.tables "
                f"WHERE table_schema = {quote_literal(_schema(a))} "
                f"AND table_name ILIKE {quote_literal('%' + a['pattern'] + '%')} ORDER BY table_name"
            ),
            Dialect.MYSQL: lambda a: f"SHOW TABLES LIKE {quote_literal('%' + a['pattern'] + '%')}",
            Dialect.SQLITE: lambda a: (
                "SELECT name FROM sqlite_master WHERE type='table' "
                f"AND name LIKE {quote_literal('%' + a['pattern'] + '%')} ORDER BY name"
            ),
            Dialect.MSSQL: lambda a: (
                "SELECT TABLE_NAME FROM INFORMATION_SCHEMA.TABLES WHERE TABLE_TYPE = 'BASE TABLE' "
                f"AND TABLE_SCHEMA = {quote_literal(_schema(a))} "
                f"AND TABLE_NAME LIKE {quote_literal('%' + a['pattern'] + '%')} ORDER BY TABLE_NAME"
            ),
            Dialect.DEFAULT: lambda a: (
                "SELECT table_name FROM information_schema.tables "
                f"WHERE table_schema = {quote_literal(_schema(a))} "
                f"AND table_name LIKE {quote_literal('%' + a['pattern'] + '%')} ORDER BY table_name"
            ),
        },
    ),
    BuiltinTool(
        name="list_columns",
        description="List all column names for a specific table",
        parameters=[_table_param(), SCHEMA_PARAM],
        templates={
            Dialect.POSTGRES: lambda a: (
                "SELECT column_name FROM information_schema.columns "
                f"WHERE table_schema = {quote_literal(_schema(a))} AND table_name = {quote_literal(a['table'])} "
                "ORDER BY ordinal_position"
            ),
            Dialect.MYSQL: lambda a: (
                "SELECT COLUMN_NAME FROM INFORMATION_SCHEMA.COLUMNS "
                f"WHERE TABLE_NAME = {quote_literal(a['table'])} ORDER BY ORDINAL_POSITION"
            ),
            Dialect.SQLITE: lambda a: f"SELECT name FROM pragma_table_info({quote_literal(a['table'])})",
            Dialect.MSSQL: lambda a: (
                "SELECT COLUMN_NAME FROM INFORMATION_SCHEMA.COLUMNS "
                f"WHERE TABLE_SCHEMA = {quote_literal(_schema(a))} AND TABLE_NAME = {quote_literal(a['table'])} "
                "ORDER BY ORDINAL_POSITION"
            ),
            Dialect.DEFAULT: lambda a: (
                "SELECT column_name FROM information_schema.columns "
                f"WHERE table_schema = {quote_literal(_schema(a))} AND table_name = {quote_literal(a['table'])}"
            ),
        },
    ),
    BuiltinTool(
        name="sample_distinct",
        description="Get distinct values from a column (useful for understanding data distribution)",
        parameters=[
            _table_param(),
            Parameter(name="column", type="string", description="Name of the column to sample", required=True),
            SCHEMA_PARAM,
            Parameter(
                name="limit",
                type="number",
                description="Maximum number of distinct values to return (default: 20, max: 100)",
            ),
        ],
        limit_default=20,
        templates={
            Dialect.POSTGRES: lambda a: (
                f"SELECT DISTINCT {quote_identifier(a['column'], Dialect.POSTGRES)} "
                f"FROM {qualified_table(a['table'], a['schema'], Dialect.POSTGRES)} LIMIT {a['limit']}"
            ),
            Dialect.MYSQL: lambda a: (
                f"SELECT DISTINCT {quote_identifier(a['column'], Dialect.MYSQL)} "
                f"FROM {qualified_table(a['table'], a['schema'], Dialect.MYSQL)} LIMIT {a['limit']}"
            ),
            Dialect.SQLITE: lambda a: (
                f"SELECT DISTINCT {quote_identifier(a['column'], Dialect.SQLITE)} "
                f"FROM {qualified_table(a['table'], None, Dialect.SQLITE)} LIMIT {a['limit']}"
            ),
            Dialect.MSSQL: lambda a: (
                f"SELECT DISTINCT TOP {a['limit']} {quote_identifier(a['column'], Dialect.MSSQL)} "
                f"FROM {qualified_table(a['table'], a['schema'], Dialect.MSSQL)}"
            ),
            Dialect.DEFAULT: lambda a: (
                f"SELECT DISTINCT {quote_identifier(a['column'], Dialect.DEFAULT)} "
                f"FROM {qualified_table(a['table'], a['schema'], Dialect.DEFAULT)} LIMIT {a['limit']}"
            ),
        },
    ),
    BuiltinTool(
        name="list_views",
        description="List all views in a schema (PostgreSQL/MSSQL) or database",
        parameters=[SCHEMA_PARAM],
        templates={
            Dialect.POSTGRES: lambda a: (
                "SELECT table_name as view_name FROM information_schema.views "
                f"WHERE table_schema = {quote_literal(_schema(a))} ORDER BY table_name"
            ),
            Dialect.MYSQL: lambda a: "SELECT TABLE_NAME as view_name FROM INFORMATION_SCHEMA.VIEWS ORDER BY TABLE_NAME",
            Dialect.SQLITE: lambda a: "SELECT name as view_name FROM sqlite_master WHERE type='view' ORDER BY name",
            Dialect.MSSQL: lambda a: (
                "SELECT TABLE_NAME as view_name FROM INFORMATION_SCHEMA.VIEWS "
                f"WHERE TABLE_SCHEMA = {quote_literal(_schema(a))} ORDER BY TABLE_NAME"
            ),
            Dialect.DEFAULT: lambda a: (
                "SELECT table_name as view_name FROM information_schema.views "
                f"WHERE table_schema = {quote_literal(_schema(a))} ORDER BY table_name"
            ),
        },
    ),
    BuiltinTool(
        name="list_indexes",
        description="List all indexes for a specific table",
        parameters=[_table_param(), SCHEMA_PARAM],
        templates={
            Dialect.POSTGRES: lambda a: (
                "SELECT indexname, indexdef FROM pg_indexes "
                f"WHERE schemaname = {quote_literal(_schema(a))} AND tablename = {quote_literal(a['table'])} "
                "ORDER BY indexname"
            ),
            Dialect.MYSQL: lambda a: f"SHOW INDEX FROM {quote_identifier(a['table'], Dialect.MYSQL)}",
            Dialect.SQLITE: lambda a: (
                "SELECT name, sql FROM sqlite_master "
                f"WHERE type='index' AND tbl_name={quote_literal(a['table'])} ORDER BY name"
            ),
            Dialect.MSSQL: lambda a: (
                "SELECT i.name as index_name, i.type_desc, i.is_unique, i.is_primary_key "
                "FROM sys.indexes i "
                "INNER JOIN sys.tables t ON i.object_id = t.object_id "
                "INNER JOIN sys.schemas s ON t.schema_id = s.schema_id "
                f"WHERE s.name = {quote_literal(_schema(a))} AND t.name = {quote_literal(a['table'])} "
                "ORDER BY i.name"
            ),
            Dialect.DEFAULT: lambda a: (
                "SELECT indexname FROM pg_indexes "
                f"WHERE schemaname = {quote_literal(_schema(a))} AND tablename = {quote_literal(a['table'])}"
            ),
        },
    ),
    BuiltinTool(
        name="list_constraints",
        description="List all constraints (primary keys, foreign keys, unique, check) for a table",
        parameters=[_table_param(), SCHEMA_PARAM],
        templates={
            Dialect.POSTGRES: lambda a: (
                "SELECT con.conname as constraint_name, con.contype as constraint_type, "
                "pg_get_constraintdef(con.oid) as definition "
                "FROM pg_constraint con "
                "JOIN pg_class rel ON rel.oid = con.conrelid "
                "JOIN pg_namespace nsp ON nsp.oid = rel.relnamespace "
                f"WHERE nsp.nspname = {quote_literal(_schema(a))} AND rel.relname = {quote_literal(a['table'])} "
                "ORDER BY con.conname"
            ),
            Dialect.MYSQL: lambda a: (
                "SELECT CONSTRAINT_NAME, CONSTRAINT_TYPE FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS "
                f"WHERE TABLE_NAME = {quote_literal(a['table'])} ORDER BY CONSTRAINT_NAME"
            ),
            # foreign keys only
            Dialect.SQLITE: lambda a: (
                "SELECT 'fk_' || id as constraint_name, 'FOREIGN KEY' as constraint_type, "
                "'REFERENCES ' || \"table\" || '(' || \"to\" || ')' as definition "
                f"FROM pragma_foreign_key_list({quote_literal(a['table'])})"
            ),
            Dialect.MSSQL: lambda a: (
                "SELECT CONSTRAINT_NAME, CONSTRAINT_TYPE FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS "
                f"WHERE TABLE_SCHEMA = {quote_literal(_schema(a))} AND TABLE_NAME = {quote_literal(a['table'])} "
                "ORDER BY CONSTRAINT_NAME"
            ),
            Dialect.DEFAULT: lambda a: (
                "SELECT constraint_name, constraint_type FROM information_schema.table_constraints "
                f"WHERE table_schema = {quote_literal(_schema(a))} AND table_name = {quote_literal(a['table'])}"
            ),
        },
    ),
]

_BUILTIN_INDEX: Dict[str, BuiltinTool] = {tool.name: tool for tool in BUILTIN_TOOLS}


def find_builtin_tool(name: str) -> Optional[BuiltinTool]:
    return _BUILTIN_INDEX.get(name)


def builtin_tool_names() -> List[str]:
    return [tool.name for tool in BUILTIN_TOOLS]


def get_builtin_tool_definitions() -> List[types.Tool]:
    """Built-in tools as MCP tool definitions."""
    return [tool.to_tool() for tool in BUILTIN_TOOLS]
