"""
DirectTranslator: one-shot natural language to SQL.

One request/response exchange with the model at temperature 0, followed by
the safety guard. A guard rejection is not retried here; it propagates to
the caller as a hard failure.
"""

import logging
from collections.abc import Sequence
from typing import Optional

from nl2sql.agents.base import BaseAgent
from nl2sql.guard import validate
from nl2sql.llm.base import BaseLLMProvider
from nl2sql.models.agent import (
    TranslationError,
    TranslatorAgentInput,
    TranslatorAgentOutput,
)
from nl2sql.models.query import GuardPolicy, SQLProvenance, SQLStatement
from nl2sql.prompts.builder import DEFAULT_SCHEMA, TableDefinition, build

logger = logging.getLogger(__name__)


class DirectTranslator(BaseAgent):
    """Single-shot translator from a prompt to a guard-validated statement."""

    def __init__(
        self,
        llm_provider: BaseLLMProvider,
        schema: Optional[Sequence[TableDefinition]] = None,
    ):
        super().__init__(name="DirectTranslator", llm_provider=llm_provider)
        self.schema = tuple(schema) if schema is not None else DEFAULT_SCHEMA

    async def execute(self, input: TranslatorAgentInput) -> TranslatorAgentOutput:
        statement = await self._translate(input.query, input.policy)
        return TranslatorAgentOutput(
            success=True,
            data={"sql": statement.text},
            metadata=self._metadata,
            statement=statement,
        )

    async def translate(self, prompt: str, policy: GuardPolicy) -> SQLStatement:
        """
        Translate a prompt into a validated SQL statement.

        Raises:
            ModelError: Provider transport or authentication failure
            TranslationError: Empty response
            GuardViolation: Non-SELECT output while writes are disallowed
        """
        output = await self(TranslatorAgentInput(query=prompt, policy=policy))
        return output.statement

    async def _translate(self, prompt: str, policy: GuardPolicy) -> SQLStatement:
        template = build(self.schema, policy, "direct")
        response = await self._complete(
            template.system, template.render_user(prompt=prompt), query=prompt
        )

        content = (response.content or "").strip()
        if not content:
            raise TranslationError(
                self.name,
                "Model returned an empty response",
                context={"query": prompt, "finish_reason": response.finish_reason},
            )

        statement = validate(content, policy, SQLProvenance.DIRECT)
        logger.info(f"Generated SQL: {statement.text}")
        return statement
