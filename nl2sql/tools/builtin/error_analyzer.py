"""
Built-in error-analyzer action.

Classifies a database error into a fixed taxonomy by ordered substring
matching on the lowercased message. Input may be a plain message or a JSON
object with an ``error`` key (and optionally ``query``), such as a failed
sql-query observation.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from enum import StrEnum
from typing import Any

from nl2sql.models.agent import ActionSuccess
from nl2sql.prompts.builder import DEFAULT_SCHEMA
from nl2sql.tools.base import ToolCategory, ToolContext, tool

logger = logging.getLogger(__name__)


class ErrorType(StrEnum):
    SYNTAX_ERROR = "SYNTAX_ERROR"
    RELATION_NOT_FOUND = "RELATION_NOT_FOUND"
    COLUMN_NOT_FOUND = "COLUMN_NOT_FOUND"
    SAFETY_GUARD = "SAFETY_GUARD"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


RETRYABLE = frozenset(
    {
        ErrorType.SYNTAX_ERROR,
        ErrorType.RELATION_NOT_FOUND,
        ErrorType.COLUMN_NOT_FOUND,
        ErrorType.SAFETY_GUARD,
    }
)

DEFAULT_TABLE_NAMES: tuple[str, ...] = tuple(table.name for table in DEFAULT_SCHEMA)


def _detect(message: str) -> ErrorType:
    lowered = message.lower()
    if "syntax error" in lowered:
        return ErrorType.SYNTAX_ERROR
    if "relation" in lowered and "does not exist" in lowered:
        return ErrorType.RELATION_NOT_FOUND
    if "column" in lowered and "does not exist" in lowered:
        return ErrorType.COLUMN_NOT_FOUND
    if "only select statements are allowed" in lowered:
        return ErrorType.SAFETY_GUARD
    return ErrorType.UNKNOWN_ERROR


def _suggestion(error_type: ErrorType, table_names: Sequence[str]) -> str:
    if error_type is ErrorType.SYNTAX_ERROR:
        return "Check SQL syntax for missing commas, parentheses, or quotes"
    if error_type is ErrorType.RELATION_NOT_FOUND:
        return f"Check table name spelling - available tables: {', '.join(table_names)}"
    if error_type is ErrorType.COLUMN_NOT_FOUND:
        return "Verify column name spelling and case"
    if error_type is ErrorType.SAFETY_GUARD:
        return "Only SELECT queries are allowed for security"
    return "Review the query for common SQL errors"


def classify_error(
    payload: str, table_names: Sequence[str] = DEFAULT_TABLE_NAMES
) -> dict[str, Any]:
    """
    Classify an error string or JSON payload.

    Returns:
        Dict with error_type, original_error, original_query, suggestion and
        retryable
    """
    message = payload
    query = None
    try:
        parsed = json.loads(payload)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict) and parsed.get("error"):
        message = str(parsed["error"])
        query = parsed.get("query")

    error_type = _detect(message)
    return {
        "error_type": error_type.value,
        "original_error": message,
        "original_query": query,
        "suggestion": _suggestion(error_type, table_names),
        "retryable": error_type in RETRYABLE,
    }


@tool(
    name="error-analyzer",
    description="Analyze SQL errors and get suggestions",
    category=ToolCategory.DIAGNOSTICS,
)
async def error_analyzer(action_input: str, ctx: ToolContext) -> ActionSuccess:
    logger.info(f"Analyzing error: {action_input[:100]}")
    return ActionSuccess(data=classify_error(action_input))
