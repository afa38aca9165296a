"""Retry logic for structured LLM calls.

Every failure of an attempt is retryable: empty responses, malformed JSON,
schema violations and adapter transport errors. Waits grow linearly
(``backoff_seconds * attempt``) between attempts.
"""

import logging
import time
from typing import Callable, List, Type

from llm_synthesis.adapter import BaseLLMAdapter, LLMRequest
from llm_synthesis.validator import LLMOutputValidationError, ModelT, validate_llm_output

logger = logging.getLogger(__name__)


class LLMRetryExhaustedError(Exception):
    """Raised when every attempt of a structured LLM call fails.

    Attributes:
        attempts: Total number of attempts made (initial + retries).
        last_error: The failure from the final attempt.
        history: Failures from every attempt, in order.
    """

    def __init__(
        self,
        attempts: int,
        last_error: Exception,
        history: List[Exception],
    ) -> None:
        self.attempts = attempts
        self.last_error = last_error
        self.history = history
        super().__init__(
            f"LLM call failed after {attempts} attempt(s). "
            f"Last error: {last_error}"
        )


def _describe(exc: Exception) -> str:
    if isinstance(exc, LLMOutputValidationError):
        return f"stage '{exc.stage}': " + "; ".join(exc.errors)
    return f"{type(exc).__name__}: {exc}"


def generate_with_retry(
    adapter: BaseLLMAdapter,
    request: LLMRequest,
    schema: Type[ModelT],
    max_retries: int = 2,
    backoff_seconds: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> ModelT:
    """Generate and validate LLM output, retrying failed attempts.

    Args:
        adapter: An LLM adapter implementing ``generate(request) -> str``.
        request: The prompt pair and model settings.
        schema: Response envelope the output must satisfy.
        max_retries: Maximum number of *additional* attempts after the
            first failure. Total attempts = 1 + max_retries.
        backoff_seconds: Base wait; attempt ``n`` (0-based) is followed by
            a wait of ``backoff_seconds * (n + 1)`` when another attempt
            remains.
        sleep: Wait function, replaceable in tests.

    Returns:
        A validated ``schema`` instance.

    Raises:
        LLMRetryExhaustedError: If all attempts fail.
    """
    errors: List[Exception] = []
    total_attempts = 1 + max(0, max_retries)

    for attempt in range(total_attempts):
        try:
            raw = adapter.generate(request)
            result = validate_llm_output(raw, schema)
            if attempt > 0:
                logger.info(
                    "LLM output validated on attempt %d/%d model=%s",
                    attempt + 1,
                    total_attempts,
                    request.model,
                )
            return result
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)
            logger.warning(
                "Attempt %d/%d failed model=%s %s",
                attempt + 1,
                total_attempts,
                request.model,
                _describe(exc),
            )

        if attempt + 1 < total_attempts:
            sleep(backoff_seconds * (attempt + 1))

    raise LLMRetryExhaustedError(
        attempts=total_attempts,
        last_error=errors[-1],
        history=errors,
    )
