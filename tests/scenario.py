"""
tests/scenario.py

Shared pipeline scenario: one campaign, three scored products and a feed
carrying two of the three nominated SKUs.
"""

from __future__ import annotations

from typing import Any

from agent.state import PipelineInput
from app.domain.pipeline_models import FeedProduct
from llm_synthesis.prompt_builder import (
    CAMPAIGN_INTERPRETER_SYSTEM,
    NOMINATION_WRITER_SYSTEM,
    PRODUCT_SELECTOR_SYSTEM,
    RISK_AUDITOR_SYSTEM,
    SIGNAL_SYNTHESIZER_SYSTEM,
)

WEEK = "2026-10-19"

MASTER_GRID = [
    ["Týden", "TÉMA (Zadaní)", "Typ pro slevu", "STATUS"],
    [WEEK, "Immunity week", "percent", "PLANNED"],
]
ACTUAL_GRID = [["Týden", "SKU"], ["2026-10-12", "OLD-1"]]
PRODUCT_GRID = [["Item name", "Revenue"], ["Vitamin C", "1200"], ["Zinc", "800"], ["Magnesium", "400"]]
BRAND_GRID = [["Brand", "Revenue"], ["VitalPoint", "5000"]]


def make_grids() -> dict[tuple[str, str], Any]:
    return {
        ("process", "MASTER"): MASTER_GRID,
        ("process", "ACTUAL"): ACTUAL_GRID,
        ("products", "Sales"): PRODUCT_GRID,
        ("brands", "Sales"): BRAND_GRID,
    }


def make_input(**overrides: Any) -> PipelineInput:
    values: dict[str, Any] = {
        "week_start": WEEK,
        "process_sheet_id": "process",
        "master_tab": "MASTER",
        "actual_week_tab": "ACTUAL",
        "product_sheet_id": "products",
        "product_tab": "Sales",
        "brand_sheet_id": "brands",
        "brand_tab": "Sales",
        "feed_url": "https://shop.example/feed.xml",
        "guardrails_raw": {"min_stock": 5},
    }
    values.update(overrides)
    return PipelineInput(**values)


def campaign_payload(campaign_id: str = "c1") -> dict[str, Any]:
    return {
        "id": campaign_id,
        "theme": "Immunity week",
        "discount_type": "percent",
        "constraints": [],
        "priority": 2,
        "target_category": None,
        "target_brand": None,
        "max_products": 5,
    }


def signal_payload(name: str, score: float) -> dict[str, Any]:
    return {
        "item_name": name,
        "revenue": 100.0,
        "purchases": 10,
        "atc_rate": 0.1,
        "recency_score": 50,
        "brand_strength": 60,
        "composite_score": score,
    }


def nomination_payload(sku: str) -> dict[str, Any]:
    return {
        "campaign_id": "c1",
        "sku": sku,
        "product_name": f"Product {sku}",
        "reason": "strong seller",
        "score": 80.0,
        "risks": [],
    }


def row_payload(sku: str, status: str | None = "APPROVED") -> dict[str, Any]:
    return {
        "week": WEEK,
        "theme": "Immunity week",
        "discount_type": "percent",
        "sku": sku,
        "product_name": f"Product {sku}",
        "reason": "strong seller",
        "action": "-20 %",
        "status": status,
        "notes": "",
    }


def audit_payload(risks: list[dict[str, Any]] | None = None, status: str = "OK") -> dict[str, Any]:
    risks = risks or []
    return {
        "risks": risks,
        "summary": {
            "total_risks": len(risks),
            "high_count": sum(1 for risk in risks if risk["severity"] == "HIGH"),
            "medium_count": 0,
            "low_count": 0,
            "overall_status": status,
        },
    }


def stage_payloads(**overrides: Any) -> dict[str, Any]:
    payloads = {
        CAMPAIGN_INTERPRETER_SYSTEM: {"campaigns": [campaign_payload()]},
        SIGNAL_SYNTHESIZER_SYSTEM: {
            "signals": [signal_payload("Vitamin C", 90), signal_payload("Zinc", 70), signal_payload("Magnesium", 40)]
        },
        PRODUCT_SELECTOR_SYSTEM: {"nominations": [nomination_payload("A"), nomination_payload("B"), nomination_payload("C")]},
        RISK_AUDITOR_SYSTEM: audit_payload(),
        NOMINATION_WRITER_SYSTEM: {"rows": [row_payload("A"), row_payload("B", status=None)]},
    }
    payloads.update(overrides)
    return payloads


FEED = [FeedProduct(sku="A", stock=10), FeedProduct(sku="B", stock=20)]
