"""
tests/test_guardrails.py

Guardrail resolution: defaults, whole-record fallback and overrides.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.domain.guardrails import DEFAULT_GUARDRAILS, Guardrails, merge_guardrails, resolve_guardrails


class TestResolveGuardrails:
    @pytest.mark.parametrize("raw", [None, "min_stock=3", 42, ["min_stock"]])
    def test_non_mapping_yields_defaults(self, raw: object) -> None:
        assert resolve_guardrails(raw) == DEFAULT_GUARDRAILS

    def test_defaults(self) -> None:
        guardrails = resolve_guardrails({})
        assert guardrails.min_stock == 5
        assert guardrails.max_campaigns_per_week == 10
        assert guardrails.max_products_per_campaign == 20
        assert guardrails.join_threshold == 0.7
        assert guardrails.product_lookback_days == 30
        assert guardrails.blacklist_skus == ()
        assert guardrails.discount_fatigue_days == 14

    def test_partial_mapping_fills_missing_fields(self) -> None:
        guardrails = resolve_guardrails({"min_stock": 2, "blacklist_skus": ["A1", "B2"]})
        assert guardrails.min_stock == 2
        assert guardrails.blacklist == frozenset({"A1", "B2"})
        assert guardrails.max_campaigns_per_week == 10

    def test_invalid_field_falls_back_to_defaults_entirely(self) -> None:
        guardrails = resolve_guardrails({"min_stock": 1, "join_threshold": 1.5})
        assert guardrails == DEFAULT_GUARDRAILS
        assert guardrails.min_stock == 5

    def test_unknown_keys_are_ignored(self) -> None:
        guardrails = resolve_guardrails({"max_campaigns_per_week": 3, "legacy_flag": True})
        assert guardrails.max_campaigns_per_week == 3


class TestMergeGuardrails:
    def test_overrides_only_given_fields(self) -> None:
        merged = merge_guardrails(Guardrails(min_stock=8), {"max_products_per_campaign": 4})
        assert merged.min_stock == 8
        assert merged.max_products_per_campaign == 4

    def test_invalid_override_raises(self) -> None:
        with pytest.raises(ValidationError):
            merge_guardrails(DEFAULT_GUARDRAILS, {"max_campaigns_per_week": 0})


def test_blacklist_ignores_blank_entries() -> None:
    guardrails = Guardrails(blacklist_skus=("X", " ", ""))
    assert guardrails.blacklist == frozenset({"X"})


def test_guardrails_are_frozen() -> None:
    with pytest.raises(ValidationError):
        DEFAULT_GUARDRAILS.min_stock = 1  # type: ignore[misc]
