"""Action system base types and decorator."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from nl2sql.connectors.base import BaseConnector
from nl2sql.models.agent import ActionFailure, ActionSuccess
from nl2sql.models.query import GuardPolicy

logger = logging.getLogger(__name__)

ActionHandler = Callable[[str, "ToolContext"], Awaitable[ActionSuccess | ActionFailure]]


class ToolCategory(StrEnum):
    DATABASE = "database"
    SCHEMA = "schema"
    DIAGNOSTICS = "diagnostics"


class ToolPolicy(BaseModel):
    enabled: bool = True


class ToolDefinition(BaseModel):
    name: str
    description: str
    category: ToolCategory
    policy: ToolPolicy = Field(default_factory=ToolPolicy)


class ToolContext(BaseModel):
    """Per-request dependencies handed to every action handler."""

    connector: BaseConnector
    policy: GuardPolicy = Field(default_factory=GuardPolicy)
    schema_name: str = "public"
    sample_rows: int = Field(default=3, ge=1)
    correlation_id: str = ""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def log_action(self, action: str, metadata: dict[str, Any]) -> None:
        logger.info(
            "tool_action",
            extra={
                "correlation_id": self.correlation_id,
                "action": action,
                "metadata": metadata,
            },
        )


def tool(
    name: str,
    description: str,
    category: ToolCategory,
    enabled: bool = True,
):
    """Register an async ``handler(action_input, ctx)`` under an action name."""

    def decorator(func: ActionHandler) -> ActionHandler:
        from nl2sql.tools.registry import ToolRegistry

        definition = ToolDefinition(
            name=name,
            description=description,
            category=category,
            policy=ToolPolicy(enabled=enabled),
        )
        ToolRegistry.register(definition, func)
        return func

    return decorator
