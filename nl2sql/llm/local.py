"""
Local LLM Provider

Implementation of BaseLLMProvider for local model servers (Ollama, vLLM,
llama.cpp) that expose the OpenAI-compatible /v1/chat/completions endpoint.
"""

import logging

import httpx

from nl2sql.llm.base import BaseLLMProvider
from nl2sql.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)


class LocalProvider(BaseLLMProvider):
    """Provider for OpenAI-compatible local model servers."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        temperature: float = 0.0,
        max_tokens: int = 1000,
        timeout: int = 30,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(
            provider_name="local",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.base_url = base_url.rstrip("/")
        self.model = model
        self.client = client or httpx.AsyncClient(timeout=float(timeout))

        logger.info(
            f"Local provider initialized: {base_url} with model: {model}",
            extra={"base_url": base_url, "model": model},
        )

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate completion using the local model server.

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses
        """
        request = self._apply_defaults(request)
        self._log_request(request)

        payload = {
            "model": request.model or self.model,
            "messages": [{"role": msg.role, "content": msg.content} for msg in request.messages],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "stream": False,
        }

        try:
            response = await self.client.post(
                f"{self.base_url}/v1/chat/completions",
                json=payload,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Local model server error: {e}")
            raise

        data = response.json()
        choice = (data.get("choices") or [{}])[0]
        usage = data.get("usage") or {}

        llm_response = LLMResponse(
            content=(choice.get("message") or {}).get("content") or "",
            model=data.get("model", self.model),
            usage=LLMUsage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            ),
            finish_reason="length" if choice.get("finish_reason") == "length" else "stop",
            provider="local",
            metadata={"base_url": self.base_url},
        )

        self._log_response(llm_response)
        return llm_response

    async def close(self) -> None:
        await self.client.aclose()
