"""Validation layer for raw LLM stage output.

Parses JSON strings and validates them against a stage's response schema.
"""

import json
import re
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class LLMOutputValidationError(Exception):
    """Raised when LLM output is empty or fails parsing or schema validation.

    Attributes:
        stage: Which validation step failed ("empty", "json_parse" or "schema").
        errors: List of human-readable error descriptions.
        raw_response: The original string that failed validation.
    """

    def __init__(
        self,
        stage: str,
        errors: List[str],
        raw_response: Optional[str],
    ) -> None:
        self.stage = stage
        self.errors = errors
        self.raw_response = raw_response
        message = (
            f"LLM output validation failed at stage '{stage}': "
            + "; ".join(errors)
        )
        super().__init__(message)


def _strip_markdown_fences(text: str) -> str:
    """Remove optional markdown code fences wrapping JSON.

    LLMs sometimes wrap output in ```json ... ``` despite the JSON-object
    response mode. This strips that wrapper so the inner JSON can be parsed.
    """
    stripped = text.strip()
    match = re.match(
        r"^```(?:json)?\s*\n?(.*?)\n?\s*```$",
        stripped,
        re.DOTALL,
    )
    if match:
        return match.group(1).strip()
    return stripped


def _project_to_schema(data: Dict[str, Any], schema: Type[BaseModel]) -> Dict[str, Any]:
    """Keep only the keys the schema declares; absent keys stay absent."""
    return {key: data[key] for key in schema.model_fields if key in data}


def validate_llm_output(raw_response: Optional[str], schema: Type[ModelT]) -> ModelT:
    """Parse and validate a raw LLM response string.

    Steps:
        1. Reject empty responses.
        2. Strip optional markdown fences.
        3. Parse as JSON and require a top-level object.
        4. Project the payload onto the schema's fields and validate.

    Args:
        raw_response: The raw string returned by the LLM adapter.
        schema: Pydantic model describing the expected response envelope.

    Returns:
        A validated instance of ``schema``.

    Raises:
        LLMOutputValidationError: If any step fails.
    """
    if raw_response is None or not raw_response.strip():
        raise LLMOutputValidationError(
            stage="empty",
            errors=["empty response from LLM"],
            raw_response=raw_response,
        )

    cleaned = _strip_markdown_fences(raw_response)

    try:
        data = json.loads(cleaned)
    except (json.JSONDecodeError, TypeError) as exc:
        raise LLMOutputValidationError(
            stage="json_parse",
            errors=[str(exc)],
            raw_response=raw_response,
        ) from exc

    if not isinstance(data, dict):
        raise LLMOutputValidationError(
            stage="schema",
            errors=["top-level JSON must be an object"],
            raw_response=raw_response,
        )

    try:
        return schema.model_validate(_project_to_schema(data, schema))
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}"
            for e in exc.errors()
        ]
        raise LLMOutputValidationError(
            stage="schema",
            errors=errors,
            raw_response=raw_response,
        ) from exc
