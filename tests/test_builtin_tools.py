"""Tests for the built-in database tool catalog."""

from unittest.mock import AsyncMock

import pytest

from mcp_database.builtin_tools import (
    BUILTIN_TOOLS,
    builtin_tool_names,
    clamp_limit,
    find_builtin_tool,
    get_builtin_tool_definitions,
    qualified_table,
    quote_identifier,
    quote_literal,
)
from mcp_database.errors import ToolInvocationError
from mcp_database.models import Dialect, text_result


EXPECTED_TOOLS = [
    "list_databases",
    "list_schemas",
    "schema_info",
    "list_tables",
    "describe_table",
    "preview_table",
    "count_rows",
    "table_stats",
    "search_tables",
    "list_columns",
    "sample_distinct",
    "list_views",
    "list_indexes",
    "list_constraints",
]


def render(name, arguments, dialect):
    return find_builtin_tool(name).render(arguments, dialect)


class TestCatalog:

    def test_all_tools_present(self):
        assert builtin_tool_names() == EXPECTED_TOOLS

    def test_every_tool_has_default_template(self):
        for tool in BUILTIN_TOOLS:
            assert Dialect.DEFAULT in tool.templates, tool.name

    def test_definitions_are_mcp_tools(self):
        definitions = {tool.name: tool for tool in get_builtin_tool_definitions()}
        schema = definitions["describe_table"].inputSchema
        assert schema["type"] == "object"
        assert schema["required"] == ["table"]
        assert set(schema["properties"]) == {"table", "schema"}

    def test_tools_without_required_params_omit_required(self):
        schema = find_builtin_tool("list_databases").input_schema()
        assert "required" not in schema

    def test_unknown_tool(self):
        assert find_builtin_tool("drop_everything") is None


class TestQuoting:

    @pytest.mark.parametrize(
        "dialect, expected",
        [
            (Dialect.POSTGRES, '"users"'),
            (Dialect.SQLITE, '"users"'),
            (Dialect.DEFAULT, '"users"'),
            (Dialect.MYSQL, "`users`"),
            (Dialect.MSSQL, "[users]"),
        ],
    )
    def test_identifier_quoting(self, dialect, expected):
        assert quote_identifier("users", dialect) == expected

    def test_embedded_delimiters_are_doubled(self):
        assert quote_identifier('we"ird', Dialect.POSTGRES) == '"we""ird"'
        assert quote_identifier("we`ird", Dialect.MYSQL) == "`we``ird`"
        assert quote_identifier("we]ird", Dialect.MSSQL) == "[we]]ird]"

    def test_literal_quoting(self):
        assert quote_literal("o'brien") == "'o''brien'"

    def test_default_schema_is_not_prefixed(self):
        assert qualified_table("users", "public", Dialect.POSTGRES) == '"users"'
        assert qualified_table("users", None, Dialect.POSTGRES) == '"users"'

    def test_custom_schema_is_prefixed(self):
        assert qualified_table("users", "sales", Dialect.POSTGRES) == '"sales"."users"'
        assert qualified_table("users", "dbo", Dialect.MSSQL) == "[dbo].[users]"

    def test_sqlite_ignores_schema(self):
        assert qualified_table("users", "sales", Dialect.SQLITE) == '"users"'


class TestClampLimit:

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, 5),
            ("", 5),
            (0, 5),
            (-5, 1),
            (9999, 100),
            (42, 42),
            ("7", 7),
            (12.9, 12),
        ],
    )
    def test_clamping(self, value, expected):
        assert clamp_limit(value, 5) == expected

    @pytest.mark.parametrize("value", ["many", True, [3]])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(ToolInvocationError):
            clamp_limit(value, 5)


class TestRendering:
    """SQL rendered per dialect."""

    def test_sqlite_describe_table_uses_pragma(self):
        assert render("describe_table", {"table": "users"}, Dialect.SQLITE) == "PRAGMA table_info(users)"

    def test_sqlite_describe_table_quotes_unusual_names(self):
        assert render("describe_table", {"table": "order items"}, Dialect.SQLITE) == 'PRAGMA table_info("order items")'

    def test_mysql_describe_table(self):
        assert render("describe_table", {"table": "users"}, Dialect.MYSQL) == "DESCRIBE `users`"

    def test_postgres_describe_table_uses_literals(self):
        sql = render("describe_table", {"table": "o'rders", "schema": "sales"}, Dialect.POSTGRES)
        assert "table_schema = 'sales'" in sql
        assert "table_name = 'o''rders'" in sql

    def test_preview_table_default_limit(self):
        sql = render("preview_table", {"table": "users"}, Dialect.POSTGRES)
        assert sql == 'SELECT * FROM "users" LIMIT 5'

    def test_preview_table_clamps_limit(self):
        assert render("preview_table", {"table": "users", "limit": 9999}, Dialect.MYSQL) == "SELECT * FROM `users` LIMIT 100"
        assert render("preview_table", {"table": "users", "limit": -5}, Dialect.SQLITE) == 'SELECT * FROM "users" LIMIT 1'

    def test_mssql_preview_uses_top(self):
        sql = render("preview_table", {"table": "users", "schema": "dbo", "limit": 3}, Dialect.MSSQL)
        assert sql == "SELECT TOP 3 * FROM [dbo].[users]"

    def test_sample_distinct_default_limit(self):
        sql = render("sample_distinct", {"table": "users", "column": "country"}, Dialect.POSTGRES)
        assert sql == 'SELECT DISTINCT "country" FROM "users" LIMIT 20'

    def test_search_tables_wraps_pattern(self):
        sql = render("search_tables", {"pattern": "user"}, Dialect.SQLITE)
        assert "name LIKE '%user%'" in sql

    def test_unknown_dialect_template_falls_back_to_default(self):
        tool = find_builtin_tool("schema_info")
        assert Dialect.SQLITE not in tool.templates
        sql = tool.render({}, Dialect.SQLITE)
        assert sql.startswith("SELECT 'public' as schema_name")

    def test_missing_required_parameter(self):
        with pytest.raises(ToolInvocationError, match="table is required"):
            render("count_rows", {}, Dialect.POSTGRES)

    def test_empty_required_parameter(self):
        with pytest.raises(ToolInvocationError, match="column is required"):
            render("sample_distinct", {"table": "users", "column": ""}, Dialect.POSTGRES)

    def test_wrong_parameter_type(self):
        with pytest.raises(ToolInvocationError, match="must be a string"):
            render("count_rows", {"table": 12}, Dialect.POSTGRES)


class TestRun:

    @pytest.mark.asyncio
    async def test_run_passes_sql_to_executor(self):
        execute_sql = AsyncMock(return_value=text_result('[{"row_count": 3}]'))

        result = await find_builtin_tool("count_rows").run({"table": "users"}, Dialect.POSTGRES, execute_sql)

        execute_sql.assert_awaited_once_with('SELECT COUNT(*) as row_count FROM "users"')
        assert result == text_result('[{"row_count": 3}]')

    @pytest.mark.asyncio
    async def test_run_does_not_execute_invalid_call(self):
        execute_sql = AsyncMock()

        with pytest.raises(ToolInvocationError):
            await find_builtin_tool("list_indexes").run({}, Dialect.POSTGRES, execute_sql)
        execute_sql.assert_not_awaited()
