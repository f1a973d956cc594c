"""Action dispatch for the agent loop."""

from __future__ import annotations

import logging

from nl2sql.connectors.base import ConnectorError
from nl2sql.models.agent import (
    ActionDispatchError,
    ActionErrorKind,
    ActionFailure,
    ActionSuccess,
)
from nl2sql.prompts.builder import ActionDescription
from nl2sql.tools.base import ToolContext
from nl2sql.tools.policy import PolicyEngine, ToolPolicyError
from nl2sql.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolExecutor:
    """
    Dispatch a named action to its handler.

    Every outcome, including an unknown or disabled action name, comes back as
    an ActionSuccess or ActionFailure so the agent can observe it and correct
    itself.
    """

    def __init__(self, policy_engine: PolicyEngine | None = None) -> None:
        from nl2sql.tools import builtin  # noqa: F401

        self.policy_engine = policy_engine or PolicyEngine()

    def available_actions(self) -> list[str]:
        return ToolRegistry.enabled_names()

    def describe_actions(self) -> list[ActionDescription]:
        return [
            ActionDescription(name=d.name, description=d.description)
            for d in ToolRegistry.list_definitions()
            if d.policy.enabled
        ]

    async def execute(
        self, name: str, action_input: str, ctx: ToolContext
    ) -> ActionSuccess | ActionFailure:
        definition = ToolRegistry.get_definition(name)
        handler = ToolRegistry.get_handler(name)
        if not definition or not handler:
            error = ActionDispatchError(name, self.available_actions())
            logger.warning(error.message)
            return ActionFailure(
                error_kind=ActionErrorKind.DISPATCH_ERROR,
                message=error.message,
                details={"action": name},
            )

        try:
            self.policy_engine.enforce(definition)
        except ToolPolicyError as exc:
            logger.warning(str(exc))
            return ActionFailure(
                error_kind=ActionErrorKind.DISPATCH_ERROR,
                message=str(exc),
                details={"action": definition.name},
            )

        ctx.log_action("tool_invoked", {"tool": definition.name, "input": action_input[:200]})

        try:
            result = await handler(action_input, ctx)
        except ConnectorError as exc:
            logger.error(f"Action failed: {definition.name} - {exc}")
            return ActionFailure(
                error_kind=ActionErrorKind.EXECUTION_ERROR,
                message=str(exc),
                details={"action": definition.name},
            )

        ctx.log_action("tool_completed", {"tool": definition.name, "status": result.status})
        return result
