"""Built-in sql-query action."""

from __future__ import annotations

import logging

from nl2sql.connectors.base import ExecutionError
from nl2sql.guard import validate
from nl2sql.models.agent import ActionErrorKind, ActionFailure, ActionSuccess, GuardViolation
from nl2sql.models.query import SQLProvenance
from nl2sql.tools.base import ToolCategory, ToolContext, tool

logger = logging.getLogger(__name__)


@tool(
    name="sql-query",
    description="Execute SELECT queries on the database",
    category=ToolCategory.DATABASE,
)
async def sql_query(action_input: str, ctx: ToolContext) -> ActionSuccess | ActionFailure:
    """Guard-validate the statement, then run it through the connector."""
    try:
        statement = validate(action_input, ctx.policy, SQLProvenance.AGENT_STEP)
    except GuardViolation as exc:
        logger.warning(f"sql-query rejected by guard: {action_input[:100]}")
        return ActionFailure(
            error_kind=ActionErrorKind.GUARD_VIOLATION,
            message=exc.message,
            details={"query": action_input},
        )

    try:
        result = await ctx.connector.exec_select(
            statement.text, allow_writes=ctx.policy.allow_writes
        )
    except ExecutionError as exc:
        logger.error(f"SQL query failed: {exc}")
        return ActionFailure(
            error_kind=ActionErrorKind.EXECUTION_ERROR,
            message=str(exc),
            details={"query": statement.text},
        )

    logger.info(f"Query executed successfully, returned {result.row_count} rows")
    return ActionSuccess(data={"row_count": result.row_count, "rows": result.rows})
