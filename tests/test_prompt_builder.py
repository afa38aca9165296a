"""
tests/test_prompt_builder.py

Prompt sections are truncated to fixed limits and the missing-feed case
is spelled out explicitly.
"""

from __future__ import annotations

import json
import re

from app.domain.pipeline_models import FeedProduct
from llm_synthesis.prompt_builder import (
    ACTUAL_WEEK_CONTEXT_LIMIT,
    FEED_PROMPT_LIMIT,
    NOMINATION_WRITER_SYSTEM,
    PRODUCT_ROWS_LIMIT,
    StagePromptBuilder,
)


def _section_items(prompt: str, title_prefix: str) -> list:
    pattern = re.escape(title_prefix) + r"[^\n]*\n```json\n(.*?)\n```"
    match = re.search(pattern, prompt, re.DOTALL)
    assert match is not None, title_prefix
    return json.loads(match.group(1))


def test_actual_week_context_truncated() -> None:
    rows = [{"SKU": str(index)} for index in range(80)]

    prompt = StagePromptBuilder().campaign_interpreter("2026-10-19", [], rows, max_campaigns=3)

    assert len(_section_items(prompt, "## Actual Week")) == ACTUAL_WEEK_CONTEXT_LIMIT
    assert "Maximum campaigns allowed: 3" in prompt


def test_product_rows_truncated_with_count_in_title() -> None:
    rows = [{"Item name": f"p{index}"} for index in range(PRODUCT_ROWS_LIMIT + 20)]

    prompt = StagePromptBuilder().signal_synthesizer(rows, [], lookback_days=30)

    assert f"Product Sales ({PRODUCT_ROWS_LIMIT + 20} rows, showing first {PRODUCT_ROWS_LIMIT})" in prompt
    assert len(_section_items(prompt, "## Product Sales")) == PRODUCT_ROWS_LIMIT


def test_feed_truncated_in_selector_prompt() -> None:
    feed = [FeedProduct(sku=f"S{index}", stock=1) for index in range(FEED_PROMPT_LIMIT + 5)]

    prompt = StagePromptBuilder().product_selector([], [], feed, [], {})

    assert len(_section_items(prompt, "## Product Feed")) == FEED_PROMPT_LIMIT


def test_missing_feed_is_stated() -> None:
    builder = StagePromptBuilder()

    assert "NO PRODUCT FEED AVAILABLE" in builder.product_selector([], [], None, [], {})
    assert "NO PRODUCT FEED AVAILABLE" in builder.risk_auditor([], None, [], [])


def test_writer_system_prompt_pins_pending_status() -> None:
    assert "ČEKÁ NA SCHVÁLENÍ" in NOMINATION_WRITER_SYSTEM
