"""
agent/nodes/campaign_interpreter_node.py

Campaign Interpreter Node: turns MASTER rows into the structured
campaigns relevant for the target week.
"""

from __future__ import annotations

import logging
from typing import Callable

from agent.state import PipelineDependencies, PipelineState
from llm_synthesis.prompt_builder import CAMPAIGN_INTERPRETER_SYSTEM
from llm_synthesis.schema import CampaignInterpretationOutput

logger = logging.getLogger(__name__)

TEMPERATURE = 0.1


def build_campaign_interpreter_node(
    dependencies: PipelineDependencies,
) -> Callable[[PipelineState], PipelineState]:
    def campaign_interpreter_node(state: PipelineState) -> PipelineState:
        pipeline_input = state["pipeline_input"]
        cap = state["guardrails"].max_campaigns_per_week

        output = dependencies.llm.complete(
            system_prompt=CAMPAIGN_INTERPRETER_SYSTEM,
            user_prompt=dependencies.prompts.campaign_interpreter(
                pipeline_input.week_start,
                state["master"].rows,
                state["actual_week"].rows,
                cap,
            ),
            schema=CampaignInterpretationOutput,
            tier="primary",
            temperature=TEMPERATURE,
        )

        campaigns = list(output.campaigns)
        if len(campaigns) > cap:
            logger.warning(
                "Campaign cap exceeded, truncating returned=%d cap=%d week=%s",
                len(campaigns),
                cap,
                pipeline_input.week_start,
            )
            campaigns = campaigns[:cap]

        logger.info("Interpreted campaigns week=%s count=%d", pipeline_input.week_start, len(campaigns))
        return {**state, "campaigns": campaigns}

    return campaign_interpreter_node
