"""
Result and API Models

The uniform response shape returned by the orchestrator: a tagged union of
DirectResult and AgentResult discriminated by ``kind``. The HTTP layer
serializes these unchanged.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from nl2sql.models.agent import MaxIterationsExceeded, ParseError, TerminalState

QueryMode = Literal["direct", "agent"]


class DirectResult(BaseModel):
    """Single-shot translation result."""

    kind: Literal["direct"] = "direct"
    sql: str = Field(..., description="Executed SQL statement")
    rows: list[dict[str, Any]] = Field(default_factory=list, description="Result rows")
    row_count: int = Field(default=0, ge=0, description="Number of rows returned")


class AgentResult(BaseModel):
    """Agent-mode result, including the reasoning trace."""

    kind: Literal["agent"] = "agent"
    sql: list[str] = Field(default_factory=list, description="SQL issued, in order")
    rows: list[dict[str, Any]] = Field(default_factory=list, description="Accumulated rows")
    row_count: int = Field(default=0, ge=0, description="Number of rows returned")
    reasoning: list[str] = Field(default_factory=list, description="Ordered reasoning entries")
    observations: list[str] = Field(default_factory=list, description="Ordered observations")
    iterations: int = Field(..., ge=1, description="Model turns used")
    success: bool = Field(..., description="Whether the run ended on a final answer")
    final_answer: str | None = Field(default=None, description="Model's final answer")
    terminal_state: str | None = Field(
        default=None, description="final_answer, max_iterations, parse_error or fallback"
    )

    def raise_for_state(self) -> None:
        """
        Raise if the run stopped without a final answer.

        Raises:
            ParseError: The last model response did not follow the grammar
            MaxIterationsExceeded: The iteration budget ran out
        """
        if self.terminal_state == TerminalState.PARSE_ERROR:
            diagnostic = self.reasoning[-1] if self.reasoning else "Unable to parse action"
            raise ParseError("ReActAgent", diagnostic, context={"iterations": self.iterations})
        if self.terminal_state == TerminalState.MAX_ITERATIONS:
            raise MaxIterationsExceeded("ReActAgent", self.iterations)


QueryResponse = Annotated[DirectResult | AgentResult, Field(discriminator="kind")]


class QueryRequest(BaseModel):
    """Request body for POST /api/query."""

    prompt: str = Field(..., min_length=1, description="Natural language question")
    mode: QueryMode = Field(default="direct", description="direct or agent")

    model_config = {
        "json_schema_extra": {
            "example": {
                "prompt": "count all contacts",
                "mode": "direct",
            }
        }
    }


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: Literal["healthy", "unhealthy"] = Field(..., description="Health status")
    version: str = Field(..., description="Application version")
    timestamp: str = Field(..., description="Current timestamp (ISO format)")


class ReadinessResponse(BaseModel):
    """Response model for readiness check endpoint."""

    status: Literal["ready", "not_ready"] = Field(..., description="Readiness status")
    version: str = Field(..., description="Application version")
    timestamp: str = Field(..., description="Current timestamp (ISO format)")
    checks: dict[str, bool] = Field(..., description="Individual component checks")


class ErrorResponse(BaseModel):
    """Response model for errors."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    detail: dict[str, Any] | None = Field(None, description="Additional error details")
