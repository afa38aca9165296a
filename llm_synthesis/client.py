"""Structured LLM client passed explicitly into the pipeline.

Wraps one adapter with the retry policy and the two model tiers used by
the stages. Constructed once per process and handed to the pipeline by
reference; stage code never builds its own client.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Literal, Optional, Type

from app.config import LLMSettings
from llm_synthesis.adapter import BaseLLMAdapter, LLMRequest, MockLLMAdapter, OpenAILLMAdapter
from llm_synthesis.retry import generate_with_retry
from llm_synthesis.validator import ModelT

logger = logging.getLogger(__name__)

ModelTier = Literal["primary", "light"]


class StructuredLLMClient:
    """Oracle facade: prompt pair + schema in, validated model out."""

    def __init__(
        self,
        adapter: BaseLLMAdapter,
        *,
        primary_model: str = "gpt-4o",
        light_model: str = "gpt-4o-mini",
        max_retries: int = 2,
        backoff_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._adapter = adapter
        self._models = {"primary": primary_model, "light": light_model}
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep

    def model_for(self, tier: ModelTier) -> str:
        return self._models[tier]

    def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        schema: Type[ModelT],
        tier: ModelTier = "light",
        temperature: float = 0.2,
        max_retries: Optional[int] = None,
    ) -> ModelT:
        """Run one structured call; raises LLMRetryExhaustedError on failure."""
        request = LLMRequest(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            model=self.model_for(tier),
            temperature=temperature,
        )
        return generate_with_retry(
            self._adapter,
            request,
            schema,
            max_retries=self._max_retries if max_retries is None else max_retries,
            backoff_seconds=self._backoff_seconds,
            sleep=self._sleep,
        )


def build_llm_client(settings: LLMSettings) -> StructuredLLMClient:
    """Instantiate the client selected by the LLM_ADAPTER setting.

    LLM_ADAPTER=mock   -> MockLLMAdapter  (local runs, no API key required)
    LLM_ADAPTER=openai -> OpenAILLMAdapter (default)
    """
    if settings.adapter == "mock":
        logger.info("Using mock LLM adapter")
        adapter: BaseLLMAdapter = MockLLMAdapter()
    else:
        adapter = OpenAILLMAdapter(
            max_tokens=settings.max_tokens,
            api_key=settings.api_key,
            base_url=settings.base_url,
        )

    return StructuredLLMClient(
        adapter,
        primary_model=settings.primary_model,
        light_model=settings.light_model,
        max_retries=settings.max_retries,
        backoff_seconds=settings.backoff_seconds,
    )
