"""LLM adapters for structured stage output.

Provides a base interface and concrete adapters for OpenAI-compatible
APIs and a deterministic mock for local runs.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LLMRequest:
    """One system/user prompt pair bound to a model and temperature."""

    system_prompt: str
    user_prompt: str
    model: str
    temperature: float = 0.2


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def generate(self, request: LLMRequest) -> str:
        """Send a prompt pair to the LLM and return the raw response text.

        Args:
            request: System instruction, user payload and model settings.

        Returns:
            Raw string response from the model (expected to be a JSON object).
        """


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    Requests the strict JSON-object response mode; streaming is never
    used so each attempt is all-or-nothing.
    """

    def __init__(
        self,
        max_tokens: int = 4096,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            max_tokens: Maximum tokens in the completion.
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY env var.
            base_url: Optional base URL for OpenAI-compatible endpoints.
        """
        try:
            from openai import OpenAI  # type: ignore[import-untyped]
        except ImportError as exc:
            raise ImportError(
                "openai package is required for OpenAILLMAdapter. "
                "Install it with: pip install openai"
            ) from exc

        client_kwargs: dict = {}
        if api_key:
            client_kwargs["api_key"] = api_key
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self._max_tokens = max_tokens

    def generate(self, request: LLMRequest) -> str:
        response = self._client.chat.completions.create(
            model=request.model,
            messages=[
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_prompt},
            ],
            temperature=request.temperature,
            max_tokens=self._max_tokens,
            response_format={"type": "json_object"},
            stream=False,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


# ---------------------------------------------------------------------------
# Fixed mock response used for local runs without an API key. Every stage
# schema projects its own keys out of this payload; an empty campaign list
# ends the pipeline at the interpreter.
# ---------------------------------------------------------------------------
_MOCK_RESPONSE = {
    "campaigns": [],
    "signals": [],
    "nominations": [],
    "risks": [],
    "summary": {
        "total_risks": 0,
        "high_count": 0,
        "medium_count": 0,
        "low_count": 0,
        "overall_status": "OK",
    },
    "rows": [],
}

_MOCK_RESPONSE_JSON = json.dumps(_MOCK_RESPONSE, indent=2)


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter that returns a fixed valid JSON response."""

    def generate(self, request: LLMRequest) -> str:
        return _MOCK_RESPONSE_JSON
