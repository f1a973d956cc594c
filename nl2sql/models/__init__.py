"""
nl2sql Models Module

Pydantic models for type-safe data validation throughout the application.

Available Models:
    Query Models:
        - GuardPolicy: Read/write policy (immutable)
        - SQLStatement: Guard-validated statement
        - SQLProvenance: direct | agent_step

    Agent Models:
        - AgentInput / AgentOutput / AgentMetadata
        - ReasoningStep / AgentTrace / TerminalState
        - ActionSuccess / ActionFailure / ActionResult
        - AgentError and the error taxonomy

    Result Models:
        - DirectResult / AgentResult / QueryResponse
        - QueryRequest, HealthResponse, ReadinessResponse, ErrorResponse
"""

from nl2sql.models.agent import (
    ActionDispatchError,
    ActionErrorKind,
    ActionFailure,
    ActionResult,
    ActionSuccess,
    AgentError,
    AgentInput,
    AgentMetadata,
    AgentOutput,
    AgentTrace,
    GuardViolation,
    MaxIterationsExceeded,
    ModelError,
    ParseError,
    ReActAgentInput,
    ReActAgentOutput,
    ReasoningStep,
    TerminalState,
    TraceFrozenError,
    TranslationError,
    TranslatorAgentInput,
    TranslatorAgentOutput,
)
from nl2sql.models.api import (
    AgentResult,
    DirectResult,
    ErrorResponse,
    HealthResponse,
    QueryMode,
    QueryRequest,
    QueryResponse,
    ReadinessResponse,
)
from nl2sql.models.query import GuardPolicy, SQLProvenance, SQLStatement

__all__ = [
    # Query
    "GuardPolicy",
    "SQLProvenance",
    "SQLStatement",
    # Agent I/O
    "AgentInput",
    "AgentOutput",
    "AgentMetadata",
    "TranslatorAgentInput",
    "TranslatorAgentOutput",
    "ReActAgentInput",
    "ReActAgentOutput",
    # Trace
    "ReasoningStep",
    "AgentTrace",
    "TerminalState",
    "TraceFrozenError",
    # Actions
    "ActionErrorKind",
    "ActionSuccess",
    "ActionFailure",
    "ActionResult",
    # Errors
    "AgentError",
    "GuardViolation",
    "ModelError",
    "TranslationError",
    "ParseError",
    "ActionDispatchError",
    "MaxIterationsExceeded",
    # Results
    "QueryMode",
    "DirectResult",
    "AgentResult",
    "QueryResponse",
    "QueryRequest",
    "HealthResponse",
    "ReadinessResponse",
    "ErrorResponse",
]
