"""
tests/test_selection_rules.py

Deterministic hard rules over oracle nominations.
"""

from __future__ import annotations

import pytest

from agent.selection_rules import apply_hard_rules
from app.domain.guardrails import Guardrails
from app.domain.pipeline_models import FeedProduct, ProductNomination


def _nomination(sku: str, campaign_id: str = "c1", score: float = 50.0) -> ProductNomination:
    return ProductNomination(
        campaign_id=campaign_id,
        sku=sku,
        product_name=f"Product {sku}",
        reason="top seller",
        score=score,
    )


FEED = [
    FeedProduct(sku="A", stock=10),
    FeedProduct(sku="B", stock=2),
    FeedProduct(sku="C", stock=None),
    FeedProduct(sku="D", stock=50, availability="out_of_stock"),
    FeedProduct(sku="E", stock=0),
]


@pytest.fixture()
def guardrails() -> Guardrails:
    return Guardrails(min_stock=5, blacklist_skus=("X",))


class TestApplyHardRules:
    def test_first_seen_sku_wins_across_campaigns(self, guardrails: Guardrails) -> None:
        nominations = [_nomination("A", "c1"), _nomination("A", "c2"), _nomination("C", "c2")]

        accepted = apply_hard_rules(nominations, guardrails, FEED)

        assert [(n.campaign_id, n.sku) for n in accepted] == [("c1", "A"), ("c2", "C")]

    def test_blacklisted_sku_dropped_without_feed(self, guardrails: Guardrails) -> None:
        accepted = apply_hard_rules([_nomination("X"), _nomination("Z")], guardrails, None)
        assert [n.sku for n in accepted] == ["Z"]

    def test_without_feed_unknown_skus_pass(self, guardrails: Guardrails) -> None:
        accepted = apply_hard_rules([_nomination("NOT-IN-ANY-FEED")], guardrails, None)
        assert len(accepted) == 1

    def test_feed_membership_and_stock_rules(self, guardrails: Guardrails) -> None:
        nominations = [_nomination(sku) for sku in ["A", "B", "C", "D", "E", "MISSING"]]

        accepted = apply_hard_rules(nominations, guardrails, FEED)

        # B is below min_stock, D is out of stock, E has zero stock, MISSING is not in the feed.
        assert [n.sku for n in accepted] == ["A", "C"]

    def test_empty_feed_drops_everything(self, guardrails: Guardrails) -> None:
        assert apply_hard_rules([_nomination("A")], guardrails, []) == []

    def test_strict_narrowing_preserves_order_and_scores(self, guardrails: Guardrails) -> None:
        nominations = [_nomination("C", score=10.0), _nomination("X"), _nomination("A", score=99.0)]

        accepted = apply_hard_rules(nominations, guardrails, FEED)

        assert accepted == [nominations[0], nominations[2]]
        assert all(n in nominations for n in accepted)

    def test_min_stock_zero_accepts_zero_stock(self) -> None:
        accepted = apply_hard_rules([_nomination("E")], Guardrails(min_stock=0), FEED)
        assert [n.sku for n in accepted] == ["E"]
