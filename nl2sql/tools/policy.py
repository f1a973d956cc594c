"""Policy enforcement for action execution."""

from __future__ import annotations

from nl2sql.tools.base import ToolDefinition


class ToolPolicyError(Exception):
    pass


class PolicyEngine:
    def enforce(self, definition: ToolDefinition) -> None:
        if not definition.policy.enabled:
            raise ToolPolicyError(f"Action '{definition.name}' is disabled by policy.")
