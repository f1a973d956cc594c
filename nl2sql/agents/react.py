"""
ReActAgent: bounded reason/act loop.

Each iteration sends the system prompt, the verbatim history of earlier
actions and observations, and the user's question to the model, then:

1. a ``Final Answer`` ends the run successfully, even if the same response
   also names an action (the action is not dispatched);
2. an ``Action`` with an ``Action Input`` is dispatched through the
   ToolExecutor and its observation appended to the history;
3. anything else ends the run with a parse error.

A run that uses up its iteration budget ends in the max-iterations state and
returns the partial trace instead of raising. Action failures, including
unknown action names, are observations the model can react to.
"""

import logging
from collections.abc import Sequence
from typing import Optional

from nl2sql.agents.base import BaseAgent
from nl2sql.agents.parser import ParsedResponse, parse_response
from nl2sql.connectors.base import BaseConnector
from nl2sql.guard import validate
from nl2sql.llm.base import BaseLLMProvider
from nl2sql.models.agent import (
    ActionSuccess,
    AgentTrace,
    GuardViolation,
    ReActAgentInput,
    ReActAgentOutput,
    ReasoningStep,
    TerminalState,
)
from nl2sql.models.query import GuardPolicy, SQLProvenance
from nl2sql.prompts.builder import DEFAULT_SCHEMA, PromptTemplate, TableDefinition, build
from nl2sql.tools.base import ToolContext
from nl2sql.tools.executor import ToolExecutor

logger = logging.getLogger(__name__)

SQL_QUERY_ACTION = "sql-query"
UNPARSEABLE_DIAGNOSTIC = "Unable to parse action"


class ReActAgent(BaseAgent):
    """Reason/act agent backed by the sql-query, schema-inspector and error-analyzer actions."""

    def __init__(
        self,
        llm_provider: BaseLLMProvider,
        connector: BaseConnector,
        tool_executor: Optional[ToolExecutor] = None,
        max_iterations: int = 5,
        schema: Optional[Sequence[TableDefinition]] = None,
        schema_name: str = "public",
        sample_rows: int = 3,
    ):
        super().__init__(name="ReActAgent", llm_provider=llm_provider)
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.connector = connector
        self.tool_executor = tool_executor or ToolExecutor()
        self.max_iterations = max_iterations
        self.schema = tuple(schema) if schema is not None else DEFAULT_SCHEMA
        self.schema_name = schema_name
        self.sample_rows = sample_rows

    async def execute(self, input: ReActAgentInput) -> ReActAgentOutput:
        budget = input.max_iterations or self.max_iterations
        template = build(
            self.schema,
            input.policy,
            "agent",
            actions=self.tool_executor.describe_actions(),
        )
        ctx = self._tool_context(input.policy, input.context.get("correlation_id", ""))
        trace = await self._run(input.query, template, ctx, budget)

        logger.info(
            f"ReAct run finished in state {trace.terminal_state} "
            f"after {trace.iterations} iterations",
            extra={
                "agent": self.name,
                "terminal_state": str(trace.terminal_state),
                "iterations": trace.iterations,
                "sql_count": len(trace.sql),
            },
        )

        return ReActAgentOutput(
            success=trace.success,
            data={
                "sql": list(trace.sql),
                "row_count": len(trace.rows),
                "final_answer": trace.final_answer,
            },
            metadata=self._metadata,
            trace=trace,
        )

    async def _run(
        self, prompt: str, template: PromptTemplate, ctx: ToolContext, budget: int
    ) -> AgentTrace:
        trace = AgentTrace()
        history = ""

        for iteration in range(1, budget + 1):
            response = await self._complete(
                template.system,
                template.render_user(prompt=prompt, context=history),
                query=prompt,
            )
            logger.debug(f"ReAct iteration {iteration}: {response.content[:100]}")
            parsed = parse_response(response.content)

            if parsed.has_final_answer:
                trace.append(
                    ReasoningStep(
                        iteration=iteration,
                        thought=parsed.thought,
                        final_answer=parsed.final_answer,
                    )
                )
                trace.finish(TerminalState.FINAL_ANSWER, parsed.final_answer)
                return trace

            if not parsed.has_action:
                logger.warning(
                    f"Unparseable agent response at iteration {iteration}",
                    extra={"agent": self.name, "response": response.content[:200]},
                )
                trace.append(
                    ReasoningStep(
                        iteration=iteration,
                        thought=parsed.thought,
                        diagnostic=UNPARSEABLE_DIAGNOSTIC,
                    )
                )
                trace.finish(TerminalState.PARSE_ERROR)
                return trace

            observation = await self._dispatch(parsed, ctx, trace)
            trace.append(
                ReasoningStep(
                    iteration=iteration,
                    thought=parsed.thought,
                    action=parsed.action,
                    action_input=parsed.action_input,
                    observation=observation,
                )
            )
            history += (
                f"\nAction: {parsed.action}"
                f"\nAction Input: {parsed.action_input}"
                f"\nObservation: {observation}"
            )

        trace.finish(TerminalState.MAX_ITERATIONS)
        return trace

    async def _dispatch(self, parsed: ParsedResponse, ctx: ToolContext, trace: AgentTrace) -> str:
        logger.info(f"Action: {parsed.action}, Input: {parsed.action_input[:200]}")
        result = await self.tool_executor.execute(parsed.action, parsed.action_input, ctx)

        if parsed.action.strip().lower() == SQL_QUERY_ACTION:
            trace.record_sql(self._recorded_sql(parsed.action_input, ctx.policy))
            if isinstance(result, ActionSuccess):
                trace.extend_rows(result.data.get("rows", []))

        return result.to_observation()

    @staticmethod
    def _recorded_sql(action_input: str, policy: GuardPolicy) -> str:
        """Guard-normalized statement, or the raw input when the guard rejects it."""
        try:
            return validate(action_input, policy, SQLProvenance.AGENT_STEP).text
        except GuardViolation:
            return action_input

    def _tool_context(self, policy: GuardPolicy, correlation_id: str) -> ToolContext:
        return ToolContext(
            connector=self.connector,
            policy=policy,
            schema_name=self.schema_name,
            sample_rows=self.sample_rows,
            correlation_id=correlation_id,
        )
