"""Action system entrypoint."""

from __future__ import annotations

from pathlib import Path

from nl2sql.tools.base import ToolCategory, ToolContext, ToolDefinition, ToolPolicy, tool
from nl2sql.tools.executor import ToolExecutor
from nl2sql.tools.policy import PolicyEngine, ToolPolicyError
from nl2sql.tools.registry import ToolRegistry


def initialize_tools(policy_path: str | Path | None = None) -> None:
    # Register built-in actions
    from nl2sql.tools.builtin import error_analyzer, schema_inspector, sql_query  # noqa: F401

    if policy_path:
        ToolRegistry.load_policy_config(policy_path)


__all__ = [
    "ToolExecutor",
    "PolicyEngine",
    "ToolPolicyError",
    "ToolRegistry",
    "ToolContext",
    "ToolDefinition",
    "ToolPolicy",
    "ToolCategory",
    "tool",
    "initialize_tools",
]
