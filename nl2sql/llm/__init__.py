"""
LLM Provider Module

Request/response abstraction over OpenAI and local OpenAI-compatible servers.

Usage:
    from nl2sql.llm import LLMProviderFactory, LLMRequest, LLMMessage
    from nl2sql.config import get_settings

    provider = LLMProviderFactory.create_default_provider(get_settings().llm)
    response = await provider.generate(
        LLMRequest(messages=[LLMMessage(role="user", content="Hello!")])
    )
    print(response.content)
"""

from nl2sql.llm.base import BaseLLMProvider
from nl2sql.llm.factory import LLMProviderFactory
from nl2sql.llm.local import LocalProvider
from nl2sql.llm.models import LLMMessage, LLMRequest, LLMResponse, LLMUsage
from nl2sql.llm.openai import OpenAIProvider

__all__ = [
    "BaseLLMProvider",
    "LLMMessage",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    "LLMProviderFactory",
    "OpenAIProvider",
    "LocalProvider",
]
