"""
Query Models

The read/write policy and the validated SQL statement that the guard
produces. Both are immutable: a policy is built once from configuration and
shared read-only across requests.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SQLProvenance(StrEnum):
    """Where a statement came from."""

    DIRECT = "direct"
    AGENT_STEP = "agent_step"


class GuardPolicy(BaseModel):
    """Process-wide read/write policy, immutable per request."""

    allow_writes: bool = Field(
        default=False,
        description="Permit statements other than SELECT",
    )

    model_config = ConfigDict(frozen=True)

    def describe(self) -> str:
        """Render the policy as a sentence for model-facing prompts."""
        if self.allow_writes:
            return "WRITE OPERATIONS: Permitted (INSERT/UPDATE/DELETE allowed)."
        return (
            "SECURITY CONSTRAINT: Generate ONLY SELECT queries. "
            "Never INSERT/UPDATE/DELETE/DROP/ALTER."
        )


class SQLStatement(BaseModel):
    """A statement that has passed the safety guard."""

    text: str = Field(..., min_length=1, description="Normalized SQL text")
    provenance: SQLProvenance = Field(
        default=SQLProvenance.DIRECT,
        description="Producer of the statement",
    )
    validated: bool = Field(
        default=False,
        description="Whether the guard accepted this statement",
    )

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.text
