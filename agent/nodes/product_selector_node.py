"""
agent/nodes/product_selector_node.py

Product Selector Node: asks the oracle for nominations per campaign and
narrows them with the deterministic hard rules.
"""

from __future__ import annotations

import logging
from typing import Callable

from agent.selection_rules import apply_hard_rules
from agent.state import PipelineDependencies, PipelineState
from llm_synthesis.prompt_builder import PRODUCT_SELECTOR_SYSTEM
from llm_synthesis.schema import ProductSelectionOutput

logger = logging.getLogger(__name__)

TEMPERATURE = 0.2


def build_product_selector_node(
    dependencies: PipelineDependencies,
) -> Callable[[PipelineState], PipelineState]:
    def product_selector_node(state: PipelineState) -> PipelineState:
        guardrails = state["guardrails"]
        feed_products = state.get("feed_products")

        output = dependencies.llm.complete(
            system_prompt=PRODUCT_SELECTOR_SYSTEM,
            user_prompt=dependencies.prompts.product_selector(
                state["campaigns"],
                state["signals"],
                feed_products,
                state.get("actual_week_skus", []),
                guardrails.model_dump(mode="json"),
            ),
            schema=ProductSelectionOutput,
            tier="primary",
            temperature=TEMPERATURE,
        )

        nominations = apply_hard_rules(output.nominations, guardrails, feed_products)
        logger.info(
            "Selected products proposed=%d accepted=%d",
            len(output.nominations),
            len(nominations),
        )
        return {**state, "nominations": nominations}

    return product_selector_node
