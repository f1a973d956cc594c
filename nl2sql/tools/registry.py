"""Action registry. Names are matched case-insensitively."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from nl2sql.tools.base import ActionHandler, ToolDefinition

logger = logging.getLogger(__name__)


class ToolRegistry:
    _definitions: dict[str, ToolDefinition] = {}
    _handlers: dict[str, ActionHandler] = {}

    @classmethod
    def register(cls, definition: ToolDefinition, handler: ActionHandler) -> None:
        key = definition.name.lower()
        cls._definitions[key] = definition
        cls._handlers[key] = handler
        logger.debug(f"Registered action: {definition.name}")

    @classmethod
    def get_definition(cls, name: str) -> ToolDefinition | None:
        return cls._definitions.get(name.strip().lower())

    @classmethod
    def get_handler(cls, name: str) -> ActionHandler | None:
        return cls._handlers.get(name.strip().lower())

    @classmethod
    def list_definitions(cls) -> list[ToolDefinition]:
        return list(cls._definitions.values())

    @classmethod
    def enabled_names(cls) -> list[str]:
        return [d.name for d in cls._definitions.values() if d.policy.enabled]

    @classmethod
    def load_policy_config(cls, path: str | Path) -> None:
        """
        Apply a YAML policy file of the form::

            tools:
              - name: sample-tool
                enabled: false
        """
        policy_path = Path(path)
        if not policy_path.exists():
            logger.warning(f"Tool policy file not found: {policy_path}")
            return

        data = yaml.safe_load(policy_path.read_text()) or {}
        for tool_policy in data.get("tools", []):
            name = str(tool_policy.get("name", "")).lower()
            if not name or name not in cls._definitions:
                continue
            definition = cls._definitions[name]
            policy = definition.policy.model_copy(
                update={"enabled": tool_policy.get("enabled", definition.policy.enabled)}
            )
            cls._definitions[name] = definition.model_copy(update={"policy": policy})
            logger.info(f"Loaded policy for action: {definition.name}")
