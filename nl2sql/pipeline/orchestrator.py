"""
Query Orchestrator

LangGraph state machine that turns a prompt into a uniform result:

- direct mode: DirectTranslator → execute → DirectResult
- agent mode: ReActAgent → back-fill rows → AgentResult
- agent mode disabled by configuration, or the agent raising an
  unrecoverable error: exactly one direct-mode translation wrapped in the
  agent result shape (a failure there surfaces to the caller)

Every statement reaches the database through the safety guard and the
connector's own SELECT-only check.
"""

import logging
import uuid
from typing import Any, TypedDict

from langgraph.graph import END, START, StateGraph

from nl2sql.agents.react import ReActAgent
from nl2sql.agents.translator import DirectTranslator
from nl2sql.config import Settings, get_settings
from nl2sql.connectors.base import BaseConnector, ExecutionError
from nl2sql.connectors.factory import create_connector
from nl2sql.guard import validate
from nl2sql.llm.base import BaseLLMProvider
from nl2sql.llm.factory import LLMProviderFactory
from nl2sql.models import (
    AgentError,
    AgentResult,
    AgentTrace,
    DirectResult,
    GuardPolicy,
    GuardViolation,
    QueryMode,
    ReActAgentInput,
    SQLProvenance,
)
from nl2sql.tools import ToolExecutor, initialize_tools

logger = logging.getLogger(__name__)

DISABLED_FALLBACK_NOTICE = "Fallback to direct mode due to agent mode being disabled"
FAILURE_FALLBACK_NOTICE = "Fallback to direct mode after agent failure"
FALLBACK_OBSERVATION = "Direct SQL generation used"
FALLBACK_STATE = "fallback"


class QueryState(TypedDict, total=False):
    prompt: str
    mode: QueryMode
    policy: GuardPolicy
    correlation_id: str
    trace: AgentTrace | None
    agent_error: AgentError | None
    result: DirectResult | AgentResult | None


class QueryOrchestrator:
    """
    Entry point for translating and executing a prompt.

    Usage:
        orchestrator = QueryOrchestrator(llm_provider, connector)
        result = await orchestrator.process("count all contacts", mode="direct")
        print(result.sql, result.rows)
    """

    def __init__(
        self,
        llm_provider: BaseLLMProvider,
        connector: BaseConnector,
        settings: Settings | None = None,
        translator: DirectTranslator | None = None,
        agent: ReActAgent | None = None,
    ):
        """
        Initialize orchestrator with its collaborators.

        Args:
            llm_provider: Shared LLM provider
            connector: Connected database connector
            settings: Application settings (defaults to get_settings())
            translator: Override the direct translator
            agent: Override the reason/act agent
        """
        self.config = settings or get_settings()
        self.connector = connector
        self.agent_enabled = self.config.agent.enabled
        self.default_policy = self.config.guard_policy()

        initialize_tools(self.config.tools.policy_path)

        self.translator = translator or DirectTranslator(llm_provider)
        self.agent = agent or ReActAgent(
            llm_provider,
            connector,
            tool_executor=ToolExecutor(),
            max_iterations=self.config.agent.max_iterations,
            schema_name=self.config.database.schema_name,
            sample_rows=self.config.agent.sample_rows,
        )

        self.graph = self._build_graph()
        logger.info("QueryOrchestrator initialized", extra={"agent_enabled": self.agent_enabled})

    def _build_graph(self):
        workflow = StateGraph(QueryState)

        workflow.add_node("direct", self._run_direct)
        workflow.add_node("agent", self._run_agent)
        workflow.add_node("backfill", self._run_backfill)
        workflow.add_node("fallback", self._run_fallback)

        workflow.add_conditional_edges(
            START,
            self._route,
            {
                "direct": "direct",
                "agent": "agent",
                "fallback": "fallback",
            },
        )
        workflow.add_conditional_edges(
            "agent",
            self._after_agent,
            {
                "backfill": "backfill",
                "fallback": "fallback",
            },
        )
        workflow.add_edge("direct", END)
        workflow.add_edge("backfill", END)
        workflow.add_edge("fallback", END)

        return workflow.compile()

    async def process(
        self,
        prompt: str,
        mode: QueryMode = "direct",
        policy: GuardPolicy | None = None,
    ) -> DirectResult | AgentResult:
        """
        Translate and execute a prompt.

        Args:
            prompt: Natural language question
            mode: "direct" or "agent"
            policy: Read/write policy (defaults to the configured policy)

        Returns:
            DirectResult for direct mode, AgentResult for agent mode

        Raises:
            GuardViolation, TranslationError, ModelError: Direct translation failed
            ExecutionError: The database rejected a direct-mode statement
        """
        if mode not in ("direct", "agent"):
            raise ValueError(f"Unknown mode: {mode}")

        state: QueryState = {
            "prompt": prompt,
            "mode": mode,
            "policy": policy or self.default_policy,
            "correlation_id": uuid.uuid4().hex,
            "trace": None,
            "agent_error": None,
            "result": None,
        }
        logger.info(
            f"Processing {mode} query: {prompt[:100]}",
            extra={"correlation_id": state["correlation_id"], "mode": mode},
        )

        final_state = await self.graph.ainvoke(state)
        return final_state["result"]

    # ========================================================================
    # Routing
    # ========================================================================

    def _route(self, state: QueryState) -> str:
        if state["mode"] == "direct":
            return "direct"
        return "agent" if self.agent_enabled else "fallback"

    def _after_agent(self, state: QueryState) -> str:
        return "fallback" if state.get("agent_error") else "backfill"

    # ========================================================================
    # Nodes
    # ========================================================================

    async def _run_direct(self, state: QueryState) -> dict[str, Any]:
        sql, rows = await self._translate_and_execute(state["prompt"], state["policy"])
        return {"result": DirectResult(sql=sql, rows=rows, row_count=len(rows))}

    async def _run_agent(self, state: QueryState) -> dict[str, Any]:
        try:
            output = await self.agent(
                ReActAgentInput(
                    query=state["prompt"],
                    policy=state["policy"],
                    context={"correlation_id": state["correlation_id"]},
                )
            )
        except AgentError as e:
            logger.warning(
                f"Agent failed, falling back to direct mode: {e}",
                extra={"correlation_id": state["correlation_id"], "error": e.to_dict()},
            )
            return {"agent_error": e}
        return {"trace": output.trace}

    async def _run_backfill(self, state: QueryState) -> dict[str, Any]:
        trace = state["trace"]
        rows = list(trace.rows)

        if trace.success and trace.sql and not rows:
            rows = await self._backfill_rows(trace.sql[-1], state["policy"])

        return {
            "result": AgentResult(
                sql=list(trace.sql),
                rows=rows,
                row_count=len(rows),
                reasoning=trace.reasoning,
                observations=trace.observations,
                iterations=trace.iterations,
                success=trace.success,
                final_answer=trace.final_answer,
                terminal_state=str(trace.terminal_state),
            )
        }

    async def _run_fallback(self, state: QueryState) -> dict[str, Any]:
        error = state.get("agent_error")
        notice = DISABLED_FALLBACK_NOTICE if error is None else f"{FAILURE_FALLBACK_NOTICE}: {error.message}"

        sql, rows = await self._translate_and_execute(state["prompt"], state["policy"])
        return {
            "result": AgentResult(
                sql=[sql],
                rows=rows,
                row_count=len(rows),
                reasoning=[notice],
                observations=[FALLBACK_OBSERVATION],
                iterations=1,
                success=True,
                terminal_state=FALLBACK_STATE,
            )
        }

    # ========================================================================
    # Helpers
    # ========================================================================

    async def _translate_and_execute(
        self, prompt: str, policy: GuardPolicy
    ) -> tuple[str, list[dict[str, Any]]]:
        statement = await self.translator.translate(prompt, policy)
        result = await self.connector.exec_select(statement.text, allow_writes=policy.allow_writes)
        logger.info(f"Executed SQL returned {result.row_count} rows", extra={"sql": statement.text})
        return statement.text, result.rows

    async def _backfill_rows(self, sql: str, policy: GuardPolicy) -> list[dict[str, Any]]:
        try:
            statement = validate(sql, policy, SQLProvenance.AGENT_STEP)
            result = await self.connector.exec_select(
                statement.text, allow_writes=policy.allow_writes
            )
        except (GuardViolation, ExecutionError) as e:
            logger.warning(f"Failed to execute final SQL from agent: {e}")
            return []
        return result.rows


async def create_orchestrator(settings: Settings | None = None) -> QueryOrchestrator:
    """
    Create a QueryOrchestrator with a provider and a connected connector.

    Raises:
        ValueError: If DATABASE_URL is not configured
    """
    config = settings or get_settings()
    if not config.database.url:
        raise ValueError("DATABASE_URL must be set to create an orchestrator.")

    llm_provider = LLMProviderFactory.create_default_provider(config.llm)
    connector = create_connector(
        database_url=str(config.database.url),
        pool_size=config.database.pool_size,
        timeout=config.database.timeout,
    )
    await connector.connect()

    return QueryOrchestrator(llm_provider, connector, settings=config)
