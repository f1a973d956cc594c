"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import logging
from typing import Any
from unittest.mock import AsyncMock

import pytest

from nl2sql.connectors.base import BaseConnector, QueryResult
from nl2sql.llm.models import LLMResponse, LLMUsage

# ============================================================================
# Logging Configuration
# ============================================================================


QUIETED_LOGGERS = ("nl2sql", "httpx", "openai", "asyncio", "asyncpg")


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """
    Capture logs at DEBUG for every test.

    CLI commands silence library loggers, so their levels are restored
    afterwards to keep caplog assertions independent of test order.
    """
    saved_levels = {name: logging.getLogger(name).level for name in QUIETED_LOGGERS}
    caplog.set_level(logging.DEBUG)
    yield
    logging.disable(logging.NOTSET)
    for name, level in saved_levels.items():
        logging.getLogger(name).setLevel(level)


# ============================================================================
# Environment and Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def mock_openai_api_key(monkeypatch):
    """
    Provide an OpenAI API key and a clean environment for every test.

    Settings are cached, so the cache is cleared before and after each test.
    """
    from nl2sql.config import get_settings

    get_settings.cache_clear()

    for name in (
        "DATABASE_URL",
        "ALLOW_WRITE_SQL",
        "DATABASE_ALLOW_WRITE_SQL",
        "AGENT_ENABLED",
        "AGENT_MAX_ITERATIONS",
        "REACT_MAX_ITERATIONS",
        "TOOLS_POLICY_PATH",
        "LLM_DEFAULT_PROVIDER",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NL2SQL_ENV_SOURCE", "env")

    test_key = "sk-test-key-1234567890-abcdefghijklmnop"
    monkeypatch.setenv("LLM_OPENAI_API_KEY", test_key)
    yield test_key

    get_settings.cache_clear()


@pytest.fixture
def tool_registry_snapshot(monkeypatch):
    """Let a test change action policies without leaking into other tests."""
    from nl2sql.tools import ToolRegistry, initialize_tools

    initialize_tools()
    monkeypatch.setattr(ToolRegistry, "_definitions", dict(ToolRegistry._definitions))
    monkeypatch.setattr(ToolRegistry, "_handlers", dict(ToolRegistry._handlers))
    return ToolRegistry


# ============================================================================
# Mock LLM Provider
# ============================================================================


def make_llm_response(content: str) -> LLMResponse:
    return LLMResponse(
        content=content,
        model="mock-model",
        usage=LLMUsage(prompt_tokens=1, completion_tokens=1, total_tokens=2),
        finish_reason="stop",
        provider="mock",
        metadata={},
    )


class MockLLMProvider:
    """Scripted stand-in for a provider: responses are returned in order."""

    def __init__(self):
        self.provider_name = "mock"
        self.generate = AsyncMock()
        self.close = AsyncMock()

    def set_response(self, response: str) -> None:
        """Return the same response for every call."""
        self.generate.side_effect = None
        self.generate.return_value = make_llm_response(response)

    def set_responses(self, *responses: str) -> None:
        """Return each response once, in order."""
        self.generate.side_effect = [make_llm_response(r) for r in responses]

    def set_error(self, error: Exception) -> None:
        self.generate.side_effect = error

    def user_messages(self) -> list[str]:
        """User-turn text of every call made so far."""
        return [call.args[0].messages[-1].content for call in self.generate.call_args_list]

    def system_messages(self) -> list[str]:
        return [call.args[0].messages[0].content for call in self.generate.call_args_list]


@pytest.fixture
def mock_llm_provider():
    """
    Mock LLM provider for testing agents.

    Usage:
        def test_agent(mock_llm_provider):
            mock_llm_provider.set_responses("Thought: ...", "Final Answer: ...")
    """
    return MockLLMProvider()


# ============================================================================
# Fake Database Connector
# ============================================================================


class FakeConnector(BaseConnector):
    """
    In-memory connector that answers statements by substring rules.

    The inherited exec_select() keeps its SELECT-only check, so tests see the
    same second line of defense as production.
    """

    def __init__(self):
        super().__init__(
            host="localhost",
            port=5432,
            database="sql_ai_db",
            user="sql_ai_user",
            password="secret",
        )
        self.rules: list[tuple[str, Any]] = []
        self.executed: list[tuple[str, list[Any] | None]] = []
        self.closed = False

    def on(self, fragment: str, result: list[dict[str, Any]] | Exception) -> "FakeConnector":
        """Answer statements containing ``fragment`` with rows or an exception."""
        self.rules.append((fragment, result))
        return self

    async def connect(self) -> None:
        self._connected = True

    async def execute(self, query, params=None, timeout=None) -> QueryResult:
        self.executed.append((query, params))
        for fragment, result in self.rules:
            if fragment in query:
                if isinstance(result, Exception):
                    raise result
                return QueryResult(
                    rows=list(result),
                    row_count=len(result),
                    columns=list(result[0].keys()) if result else [],
                )
        return QueryResult(rows=[], row_count=0)

    async def close(self) -> None:
        self.closed = True
        self._connected = False

    @property
    def statements(self) -> list[str]:
        return [query for query, _ in self.executed]


@pytest.fixture
def fake_connector():
    """Connected fake connector with no rules (every statement returns no rows)."""
    connector = FakeConnector()
    connector._connected = True
    return connector


# ============================================================================
# Common Test Data
# ============================================================================


@pytest.fixture
def contact_rows() -> list[dict[str, Any]]:
    return [
        {"id": 1, "first_name": "Ada", "last_name": "Lovelace"},
        {"id": 2, "first_name": "Alan", "last_name": "Turing"},
    ]
