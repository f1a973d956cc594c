"""
Built-in schema-inspector action.

Accepted commands (case-insensitive):

- ``tables``: base tables in the configured schema
- ``describe <table>``: columns with type and nullability
- ``sample <table>``: the first few rows of a table

Catalog lookups bind the schema and table name as parameters. ``sample``
interpolates the table name only after the catalog has confirmed it exists.
"""

from __future__ import annotations

import logging

from nl2sql.connectors.base import ExecutionError
from nl2sql.models.agent import ActionErrorKind, ActionFailure, ActionSuccess
from nl2sql.tools.base import ToolCategory, ToolContext, tool

logger = logging.getLogger(__name__)

USAGE = "Invalid command. Use: tables, describe <table>, or sample <table>"

_TABLES_QUERY = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = $1 AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

_COLUMNS_QUERY = """
    SELECT column_name, data_type, is_nullable
    FROM information_schema.columns
    WHERE table_schema = $1 AND table_name = $2
    ORDER BY ordinal_position
"""

_TABLE_EXISTS_QUERY = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = $1 AND table_name = $2
"""


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


@tool(
    name="schema-inspector",
    description='Inspect database schema (use "tables", "describe <table>", or "sample <table>")',
    category=ToolCategory.SCHEMA,
)
async def schema_inspector(action_input: str, ctx: ToolContext) -> ActionSuccess | ActionFailure:
    command = action_input.strip().lower()
    parts = command.split(maxsplit=1)
    logger.info(f"Inspecting schema: {command}")

    try:
        if parts == ["tables"]:
            return await _list_tables(ctx)
        if len(parts) == 2 and parts[0] == "describe":
            return await _describe_table(parts[1].strip(), ctx)
        if len(parts) == 2 and parts[0] == "sample":
            return await _sample_table(parts[1].strip(), ctx)
    except ExecutionError as exc:
        logger.error(f"Schema inspection failed: {exc}")
        return ActionFailure(
            error_kind=ActionErrorKind.EXECUTION_ERROR,
            message=str(exc),
            details={"command": action_input},
        )

    return ActionFailure(
        error_kind=ActionErrorKind.INVALID_INPUT,
        message=USAGE,
        details={"command": action_input, "valid_forms": ["tables", "describe <table>", "sample <table>"]},
    )


async def _list_tables(ctx: ToolContext) -> ActionSuccess:
    result = await ctx.connector.exec_select(_TABLES_QUERY, [ctx.schema_name])
    return ActionSuccess(data={"tables": [row["table_name"] for row in result.rows]})


async def _describe_table(table: str, ctx: ToolContext) -> ActionSuccess | ActionFailure:
    result = await ctx.connector.exec_select(_COLUMNS_QUERY, [ctx.schema_name, table])
    if not result.rows:
        return _not_found(table)
    columns = [
        {
            "name": row["column_name"],
            "type": row["data_type"],
            "nullable": row["is_nullable"] == "YES",
        }
        for row in result.rows
    ]
    return ActionSuccess(data={"table": table, "columns": columns})


async def _sample_table(table: str, ctx: ToolContext) -> ActionSuccess | ActionFailure:
    exists = await ctx.connector.exec_select(_TABLE_EXISTS_QUERY, [ctx.schema_name, table])
    if not exists.rows:
        return _not_found(table)

    name = exists.rows[0]["table_name"]
    query = (
        f"SELECT * FROM {_quote_identifier(ctx.schema_name)}.{_quote_identifier(name)} "
        f"LIMIT {ctx.sample_rows}"
    )
    result = await ctx.connector.exec_select(query)
    return ActionSuccess(
        data={"table": name, "sample_rows": result.rows, "row_count": result.row_count}
    )


def _not_found(table: str) -> ActionFailure:
    return ActionFailure(
        error_kind=ActionErrorKind.NOT_FOUND,
        message=f"Table '{table}' not found",
        details={"table": table},
    )
