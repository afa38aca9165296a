"""
agent/nodes/finalize_node.py

Terminal nodes: assemble the PipelineResult after the last stage, or the
empty WARNING result when no campaign is relevant for the week.
"""

from __future__ import annotations

import logging
from typing import Sequence

from agent.state import PipelineState
from app.domain.pipeline_models import (
    OverallStatus,
    PipelineResult,
    PipelineStats,
    ProductNomination,
    ProductSignal,
)

logger = logging.getLogger(__name__)


def compute_stats(
    campaign_count: int,
    nominations: Sequence[ProductNomination],
    signals: Sequence[ProductSignal],
) -> PipelineStats:
    """Counts plus join rate: share of scored products that got nominated."""
    unique_skus = len({nomination.sku for nomination in nominations})
    join_rate = round(unique_skus / len(signals), 2) if signals else 0.0
    return PipelineStats(
        campaign_count=campaign_count,
        product_count=len(nominations),
        unique_skus=unique_skus,
        join_rate=join_rate,
    )


def finalize_node(state: PipelineState) -> PipelineState:
    campaigns = state.get("campaigns", [])
    signals = state.get("signals", [])
    nominations = state.get("nominations", [])
    stats = compute_stats(len(campaigns), nominations, signals)

    guardrails = state.get("guardrails")
    if guardrails is not None and signals and stats.join_rate < guardrails.join_threshold:
        logger.warning(
            "Join rate below threshold join_rate=%.2f threshold=%.2f",
            stats.join_rate,
            guardrails.join_threshold,
        )

    result = PipelineResult(
        campaigns=tuple(campaigns),
        signals=tuple(signals),
        nominations=tuple(nominations),
        risks=tuple(state.get("risks", [])),
        final_rows=tuple(state.get("final_rows", [])),
        stats=stats,
        fingerprints=dict(state.get("fingerprints", {})),
        overall_status=state.get("overall_status", OverallStatus.OK),
    )
    return {**state, "result": result}


def no_campaigns_node(state: PipelineState) -> PipelineState:
    logger.warning(
        "No relevant campaigns, skipping downstream stages week=%s",
        state["pipeline_input"].week_start,
    )
    result = PipelineResult(
        fingerprints=dict(state.get("fingerprints", {})),
        overall_status=OverallStatus.WARNING,
    )
    return {**state, "result": result}
