"""
Agent I/O Models

Pydantic models for agent inputs, outputs, the reasoning trace, action
results and the error taxonomy shared by the translator, the agent loop and
the orchestrator.
"""

import json
from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from nl2sql.models.query import GuardPolicy, SQLStatement


class AgentMetadata(BaseModel):
    """Metadata about agent execution."""

    agent_name: str
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None
    duration_ms: float | None = None
    llm_calls: int = 0
    tokens_used: int | None = None
    error: str | None = None

    model_config = ConfigDict(frozen=False)

    def mark_complete(self) -> None:
        """Mark execution as complete and calculate duration."""
        self.completed_at = datetime.now(UTC)
        if self.started_at:
            delta = self.completed_at - self.started_at
            self.duration_ms = delta.total_seconds() * 1000


class AgentInput(BaseModel):
    """
    Base input model for all agents.

    Every agent receives the user's prompt and the policy it must honor.
    """

    query: str = Field(..., min_length=1, description="User's natural language prompt")
    policy: GuardPolicy = Field(
        default_factory=GuardPolicy, description="Read/write policy for this request"
    )
    context: dict[str, Any] = Field(
        default_factory=dict, description="Additional context passed between agents"
    )


class AgentOutput(BaseModel):
    """Base output model for all agents."""

    success: bool = Field(..., description="Whether the agent executed successfully")
    data: dict[str, Any] = Field(default_factory=dict, description="Agent-specific output data")
    metadata: AgentMetadata = Field(..., description="Execution metadata")


# ============================================================================
# Errors
# ============================================================================


class AgentError(Exception):
    """
    Custom exception for agent execution errors.

    Attributes:
        agent: Name of the component that raised the error
        message: Error description
        recoverable: Whether a caller may reasonably try again
        context: Additional context for debugging
    """

    def __init__(
        self,
        agent: str,
        message: str,
        recoverable: bool = True,
        context: dict[str, Any] | None = None,
    ):
        self.agent = agent
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}
        super().__init__(f"[{agent}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/API responses."""
        return {
            "agent": self.agent,
            "message": self.message,
            "recoverable": self.recoverable,
            "context": self.context,
            "type": self.__class__.__name__,
        }


class GuardViolation(AgentError):
    """SQL rejected by the safety guard."""

    def __init__(self, raw_text: str, message: str = "Only SELECT statements are allowed."):
        self.raw_text = raw_text
        super().__init__(
            "SafetyGuard",
            f"Guard: {message}",
            recoverable=False,
            context={"raw_text": raw_text[:500]},
        )


class ModelError(AgentError):
    """Language model transport or authentication failure."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=False, context=context)


class TranslationError(AgentError):
    """The model returned an empty or malformed SQL response."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=False, context=context)


class ParseError(AgentError):
    """Agent response did not match the Thought/Action/Final Answer grammar."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=False, context=context)


class ActionDispatchError(AgentError):
    """Unknown or disabled action name."""

    def __init__(self, action: str, available: list[str]):
        self.action = action
        self.available = available
        super().__init__(
            "ToolExecutor",
            f"Unknown action: {action}. Available actions: {', '.join(available)}",
            recoverable=True,
            context={"action": action},
        )


class MaxIterationsExceeded(AgentError):
    """Agent run stopped at its iteration budget with partial results."""

    def __init__(self, agent: str, iterations: int):
        self.iterations = iterations
        super().__init__(
            agent,
            f"Stopped after {iterations} iterations without a final answer",
            recoverable=False,
            context={"iterations": iterations},
        )


# ============================================================================
# Action Results
# ============================================================================


class ActionErrorKind(StrEnum):
    """Failure categories an action can report back to the model."""

    GUARD_VIOLATION = "guard_violation"
    EXECUTION_ERROR = "execution_error"
    DISPATCH_ERROR = "dispatch_error"
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"


class ActionSuccess(BaseModel):
    """Successful action outcome."""

    status: Literal["success"] = "success"
    data: dict[str, Any] = Field(default_factory=dict)

    def to_observation(self) -> str:
        return json.dumps({"success": True, **self.data}, default=str)


class ActionFailure(BaseModel):
    """Failed action outcome, fed back to the model as an observation."""

    status: Literal["failure"] = "failure"
    error_kind: ActionErrorKind
    message: str
    details: dict[str, Any] = Field(default_factory=dict)

    def to_observation(self) -> str:
        payload = {
            "success": False,
            "error": self.message,
            "error_kind": self.error_kind.value,
            **self.details,
        }
        return json.dumps(payload, default=str)


ActionResult = Annotated[ActionSuccess | ActionFailure, Field(discriminator="status")]


# ============================================================================
# Reasoning Trace
# ============================================================================


class TerminalState(StrEnum):
    """How an agent run ended."""

    FINAL_ANSWER = "final_answer"
    MAX_ITERATIONS = "max_iterations"
    PARSE_ERROR = "parse_error"


class ReasoningStep(BaseModel):
    """One model turn of the agent loop."""

    iteration: int = Field(..., ge=1)
    thought: str | None = None
    action: str | None = None
    action_input: str | None = None
    observation: str | None = None
    final_answer: str | None = None
    diagnostic: str | None = None

    model_config = ConfigDict(frozen=True)


class TraceFrozenError(RuntimeError):
    """Raised when a finished trace is modified."""


class AgentTrace(BaseModel):
    """
    Ordered record of one agent run.

    Steps are append-only with strictly increasing iteration numbers. Once
    finish() is called the trace no longer accepts steps, SQL or rows.
    """

    steps: list[ReasoningStep] = Field(default_factory=list)
    sql: list[str] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    terminal_state: TerminalState | None = None
    final_answer: str | None = None
    success: bool = False

    @property
    def is_finished(self) -> bool:
        return self.terminal_state is not None

    @property
    def iterations(self) -> int:
        return len(self.steps)

    @property
    def reasoning(self) -> list[str]:
        entries: list[str] = []
        for step in self.steps:
            if step.thought:
                entries.append(step.thought)
            if step.diagnostic:
                entries.append(step.diagnostic)
        return entries

    @property
    def observations(self) -> list[str]:
        return [step.observation for step in self.steps if step.observation is not None]

    def append(self, step: ReasoningStep) -> None:
        self._ensure_open()
        if self.steps and step.iteration <= self.steps[-1].iteration:
            raise ValueError(
                f"Step iteration {step.iteration} must follow {self.steps[-1].iteration}"
            )
        self.steps.append(step)

    def record_sql(self, statement: str) -> None:
        self._ensure_open()
        self.sql.append(statement)

    def extend_rows(self, rows: list[dict[str, Any]]) -> None:
        self._ensure_open()
        self.rows.extend(rows)

    def finish(self, state: TerminalState, final_answer: str | None = None) -> None:
        self._ensure_open()
        if final_answer is not None and state is not TerminalState.FINAL_ANSWER:
            raise ValueError("Only a final-answer termination carries an answer")
        self.terminal_state = state
        self.final_answer = final_answer
        self.success = state is TerminalState.FINAL_ANSWER

    def _ensure_open(self) -> None:
        if self.is_finished:
            raise TraceFrozenError(f"Trace already finished ({self.terminal_state})")


# ============================================================================
# Direct Translator Models
# ============================================================================


class TranslatorAgentInput(AgentInput):
    """Input for the one-shot translator."""


class TranslatorAgentOutput(AgentOutput):
    """Output of the one-shot translator."""

    statement: SQLStatement = Field(..., description="Guard-validated SQL")


# ============================================================================
# ReAct Agent Models
# ============================================================================


class ReActAgentInput(AgentInput):
    """Input for the reason/act agent."""

    max_iterations: int | None = Field(
        default=None,
        ge=1,
        description="Override the configured iteration budget",
    )


class ReActAgentOutput(AgentOutput):
    """Output of the reason/act agent (success mirrors the trace)."""

    trace: AgentTrace = Field(..., description="Reasoning trace of the run")
