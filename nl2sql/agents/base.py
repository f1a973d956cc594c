"""
Base Agent Framework

Abstract base class for the translator and the reason/act agent.
Provides a consistent interface, timing, logging and error wrapping.

Usage:
    class MyAgent(BaseAgent):
        def __init__(self):
            super().__init__(name="MyAgent")

        async def execute(self, input: AgentInput) -> AgentOutput:
            return AgentOutput(
                success=True,
                data={"result": "value"},
                metadata=self._create_metadata()
            )
"""

import logging
import time
from abc import ABC, abstractmethod
from contextvars import ContextVar
from typing import Optional

from nl2sql.llm.base import BaseLLMProvider
from nl2sql.llm.models import LLMMessage, LLMRequest, LLMResponse
from nl2sql.models.agent import (
    AgentError,
    AgentInput,
    AgentMetadata,
    AgentOutput,
    ModelError,
)

logger = logging.getLogger(__name__)

# Metadata of the agent call in progress, private to the calling task.
_call_metadata: ContextVar[Optional[AgentMetadata]] = ContextVar(
    "agent_call_metadata", default=None
)


class BaseAgent(ABC):
    """
    Abstract base class for agents.

    The __call__ method wraps execute() with:
        - Performance timing
        - Error logging (agent errors are re-raised unchanged)
        - Metadata collection, private to each call

    Nothing is retried here. Errors from the language model or the guard
    propagate to the caller, which decides whether to fall back.
    """

    def __init__(self, name: str, llm_provider: Optional[BaseLLMProvider] = None):
        """
        Initialize base agent.

        Args:
            name: Unique identifier for this agent (e.g., "DirectTranslator")
            llm_provider: Shared LLM provider, created once at startup
        """
        self.name = name
        self.llm = llm_provider

        logger.info(f"Initialized {self.name}", extra={"agent": self.name})

    @abstractmethod
    async def execute(self, input: AgentInput) -> AgentOutput:
        """
        Execute the agent's core logic.

        Raises:
            AgentError: On execution failures
        """
        pass  # pragma: no cover - abstract method

    async def __call__(self, input: AgentInput) -> AgentOutput:
        """
        Execute the agent with timing, logging, and error handling.

        Raises:
            AgentError: Unchanged if raised by execute(); any other exception
                is wrapped in a non-recoverable AgentError
        """
        token = _call_metadata.set(self._create_metadata())
        try:
            return await self._run_call(input)
        finally:
            _call_metadata.reset(token)

    async def _run_call(self, input: AgentInput) -> AgentOutput:
        start_time = time.perf_counter()

        logger.info(
            f"Starting {self.name}",
            extra={
                "agent": self.name,
                "query": input.query[:100],
                "allow_writes": input.policy.allow_writes,
            },
        )

        try:
            output = await self.execute(input)
        except AgentError as e:
            self._finalize(start_time, error=str(e))
            logger.warning(
                f"Agent error in {self.name}",
                extra={
                    "agent": self.name,
                    "error": str(e),
                    "recoverable": e.recoverable,
                    "context": e.context,
                },
            )
            raise
        except Exception as e:
            duration_ms = self._finalize(start_time, error=str(e))
            logger.error(
                f"Unexpected error in {self.name}",
                extra={
                    "agent": self.name,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "duration_ms": duration_ms,
                },
                exc_info=True,
            )
            raise AgentError(
                agent=self.name,
                message=f"Unexpected error: {str(e)}",
                recoverable=False,
                context={"error_type": type(e).__name__},
            ) from e

        duration_ms = self._finalize(start_time)
        output.metadata = self._metadata

        logger.info(
            f"Completed {self.name}",
            extra={
                "agent": self.name,
                "success": output.success,
                "duration_ms": duration_ms,
                "llm_calls": self._metadata.llm_calls,
            },
        )
        return output

    async def _complete(self, system: str, user: str, query: str) -> LLMResponse:
        """Send one system/user exchange at temperature 0 and track the call."""
        if self.llm is None:
            raise ModelError(self.name, "No LLM provider configured")

        request = LLMRequest(
            messages=[
                LLMMessage(role="system", content=system),
                LLMMessage(role="user", content=user),
            ],
            temperature=0.0,
        )
        try:
            response = await self.llm.generate(request)
        except Exception as e:
            logger.error(f"LLM call failed: {e}", exc_info=True)
            raise ModelError(
                agent=self.name,
                message=f"LLM generation failed: {e}",
                context={"query": query},
            ) from e

        self._track_llm_call(tokens=response.usage.total_tokens)
        return response

    @property
    def _metadata(self) -> AgentMetadata:
        """Metadata of the call in progress."""
        metadata = _call_metadata.get()
        if metadata is None:
            raise RuntimeError(f"{self.name} has no call in progress")
        return metadata

    def _finalize(self, start_time: float, error: Optional[str] = None) -> float:
        duration_ms = (time.perf_counter() - start_time) * 1000
        self._metadata.mark_complete()
        self._metadata.duration_ms = duration_ms
        if error:
            self._metadata.error = error
        return duration_ms

    def _create_metadata(self) -> AgentMetadata:
        return AgentMetadata(agent_name=self.name)

    def _track_llm_call(self, tokens: Optional[int] = None) -> None:
        """
        Track an LLM API call in metadata.

        Args:
            tokens: Optional token count for this call
        """
        self._metadata.llm_calls += 1
        if tokens:
            current_tokens = self._metadata.tokens_used or 0
            self._metadata.tokens_used = current_tokens + tokens

        logger.debug(
            f"LLM call tracked for {self.name}",
            extra={
                "agent": self.name,
                "total_llm_calls": self._metadata.llm_calls,
                "tokens_this_call": tokens,
                "total_tokens": self._metadata.tokens_used,
            },
        )
