"""
agent/nodes/risk_auditor_node.py

Risk Auditor Node: asks the oracle to flag risks on the accepted
nominations and settles the overall status deterministically.
"""

from __future__ import annotations

import logging
from typing import Callable

from agent.state import PipelineDependencies, PipelineState
from llm_synthesis.prompt_builder import RISK_AUDITOR_SYSTEM
from llm_synthesis.schema import RiskAuditOutput
from risk.scoring import resolve_overall_status, summarize_findings

logger = logging.getLogger(__name__)

TEMPERATURE = 0.1


def build_risk_auditor_node(
    dependencies: PipelineDependencies,
) -> Callable[[PipelineState], PipelineState]:
    def risk_auditor_node(state: PipelineState) -> PipelineState:
        output = dependencies.llm.complete(
            system_prompt=RISK_AUDITOR_SYSTEM,
            user_prompt=dependencies.prompts.risk_auditor(
                state["nominations"],
                state.get("feed_products"),
                state.get("actual_week_skus", []),
                list(state["guardrails"].blacklist_skus),
            ),
            schema=RiskAuditOutput,
            tier="light",
            temperature=TEMPERATURE,
        )

        risks = list(output.risks)
        counts = summarize_findings(risks)
        reported = output.summary.overall_status
        overall_status = resolve_overall_status(risks, reported)
        if overall_status is not reported:
            logger.warning(
                "Raised audited status reported=%s resolved=%s high=%d",
                reported.value,
                overall_status.value,
                counts.high,
            )
        if counts.total != output.summary.total_risks:
            logger.debug(
                "Auditor summary count mismatch reported=%d counted=%d",
                output.summary.total_risks,
                counts.total,
            )

        logger.info(
            "Audited risks total=%d high=%d medium=%d low=%d status=%s",
            counts.total,
            counts.high,
            counts.medium,
            counts.low,
            overall_status.value,
        )
        return {**state, "risks": risks, "overall_status": overall_status}

    return risk_auditor_node
