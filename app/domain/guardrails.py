"""
app/domain/guardrails.py

Per-client guardrails bounding oracle-driven selection decisions.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class Guardrails(BaseModel):
    """
    Deterministic limits applied to every run.

    All fields carry defaults so an empty mapping resolves to the
    standard configuration.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    min_stock: int = Field(default=5, ge=0)
    max_campaigns_per_week: int = Field(default=10, ge=1)
    max_products_per_campaign: int = Field(default=20, ge=1)
    join_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    product_lookback_days: int = Field(default=30, ge=1)
    blacklist_skus: tuple[str, ...] = ()
    discount_fatigue_days: int = Field(default=14, ge=0)

    @property
    def blacklist(self) -> frozenset[str]:
        return frozenset(sku.strip() for sku in self.blacklist_skus if sku.strip())


DEFAULT_GUARDRAILS = Guardrails()


def resolve_guardrails(raw: Any) -> Guardrails:
    """
    Turn an arbitrary stored configuration blob into Guardrails.

    A missing or non-mapping blob, or one that fails validation, yields
    the defaults as a whole; invalid blobs are never partially merged.
    """

    if not isinstance(raw, Mapping):
        return DEFAULT_GUARDRAILS
    try:
        return Guardrails.model_validate(dict(raw))
    except ValidationError as exc:
        logger.warning(
            "Invalid guardrails configuration, falling back to defaults errors=%s",
            exc.error_count(),
        )
        return DEFAULT_GUARDRAILS


def merge_guardrails(base: Guardrails, overrides: Mapping[str, Any]) -> Guardrails:
    """
    Overlay explicit fields onto ``base`` and revalidate the result.

    Raises:
        pydantic.ValidationError: if the merged record is invalid.
    """

    return Guardrails.model_validate({**base.model_dump(), **dict(overrides)})
