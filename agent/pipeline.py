"""
agent/pipeline.py

Entry point for one pipeline execution.
"""

from __future__ import annotations

import logging
from typing import Optional

from agent.errors import PipelineError
from agent.graph import build_graph
from agent.state import PipelineDependencies, PipelineInput, ProgressCallback
from app.domain.pipeline_models import PipelineResult

logger = logging.getLogger(__name__)

__all__ = ["PipelineError", "run_pipeline"]


def run_pipeline(
    pipeline_input: PipelineInput,
    dependencies: PipelineDependencies,
    on_progress: Optional[ProgressCallback] = None,
) -> PipelineResult:
    """
    Run all stages for one client and week.

    Raises:
        PipelineError: when any stage fails terminally.
    """
    graph = build_graph(dependencies, on_progress)
    final_state = graph.invoke({"pipeline_input": pipeline_input})
    result: PipelineResult = final_state["result"]
    logger.info(
        "Pipeline finished week=%s status=%s campaigns=%d products=%d join_rate=%.2f",
        pipeline_input.week_start,
        result.overall_status.value,
        result.stats.campaign_count,
        result.stats.product_count,
        result.stats.join_rate,
    )
    return result
