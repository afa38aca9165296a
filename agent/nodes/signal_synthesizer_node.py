"""
agent/nodes/signal_synthesizer_node.py

Signal Synthesizer Node: scores products from the product and brand
sales exports.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from agent.state import PipelineDependencies, PipelineState
from app.domain.pipeline_models import ProductSignal
from llm_synthesis.prompt_builder import SIGNAL_SYNTHESIZER_SYSTEM, SIGNAL_TOP_N
from llm_synthesis.schema import SignalSynthesisOutput

logger = logging.getLogger(__name__)

TEMPERATURE = 0.1


def top_signals(signals: Sequence[ProductSignal], limit: int = SIGNAL_TOP_N) -> list[ProductSignal]:
    """Highest composite scores first; ties keep their returned order."""
    ranked = sorted(signals, key=lambda signal: signal.composite_score, reverse=True)
    return ranked[:limit]


def build_signal_synthesizer_node(
    dependencies: PipelineDependencies,
) -> Callable[[PipelineState], PipelineState]:
    def signal_synthesizer_node(state: PipelineState) -> PipelineState:
        output = dependencies.llm.complete(
            system_prompt=SIGNAL_SYNTHESIZER_SYSTEM,
            user_prompt=dependencies.prompts.signal_synthesizer(
                state["product_sales"].rows,
                state["brand_sales"].rows,
                state["guardrails"].product_lookback_days,
            ),
            schema=SignalSynthesisOutput,
            tier="light",
            temperature=TEMPERATURE,
        )

        signals = top_signals(output.signals)
        logger.info(
            "Synthesized product signals returned=%d kept=%d",
            len(output.signals),
            len(signals),
        )
        return {**state, "signals": signals}

    return signal_synthesizer_node
