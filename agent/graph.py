"""
agent/graph.py

LangGraph workflow assembly for the weekly nomination pipeline.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from langgraph.graph import END, START, StateGraph

from agent.errors import PipelineError, handle_pipeline_failure
from agent.nodes.campaign_interpreter_node import build_campaign_interpreter_node
from agent.nodes.finalize_node import finalize_node, no_campaigns_node
from agent.nodes.load_data_node import build_load_data_node
from agent.nodes.nomination_writer_node import build_nomination_writer_node
from agent.nodes.product_selector_node import build_product_selector_node
from agent.nodes.risk_auditor_node import build_risk_auditor_node
from agent.nodes.signal_synthesizer_node import build_signal_synthesizer_node
from agent.state import (
    PipelineDependencies,
    PipelineProgress,
    PipelineState,
    PipelineStep,
    ProgressCallback,
)
from llm_synthesis.retry import LLMRetryExhaustedError

logger = logging.getLogger(__name__)

NodeFn = Callable[[PipelineState], PipelineState]


def _observed(
    node: NodeFn,
    *,
    step: PipelineStep,
    message: str,
    on_progress: Optional[ProgressCallback],
) -> NodeFn:
    """
    Emit the progress event for ``step`` on entry and convert any stage
    exception into a PipelineError tagged with the step.
    """

    def observed_node(state: PipelineState) -> PipelineState:
        if on_progress is not None:
            on_progress(PipelineProgress(step=step, message=message))
        week_start = state["pipeline_input"].week_start
        try:
            return node(state)
        except PipelineError:
            raise
        except LLMRetryExhaustedError as exc:
            handle_pipeline_failure(
                failure_code="llm_retry_exhausted",
                message=str(exc),
                stage_name=step,
                week_start=week_start,
                cause=exc,
            )
            raise
        except Exception as exc:  # noqa: BLE001
            handle_pipeline_failure(
                failure_code="stage_failed",
                message=f"{type(exc).__name__}: {exc}",
                stage_name=step,
                week_start=week_start,
                cause=exc,
            )
            raise

    return observed_node


def route_after_interpretation(state: PipelineState) -> str:
    if not state.get("campaigns"):
        return "no_campaigns"
    return "synthesize_signals"


def build_graph(
    dependencies: PipelineDependencies,
    on_progress: Optional[ProgressCallback] = None,
):
    """
    Build and compile the pipeline graph with nodes bound to ``dependencies``.
    """
    graph = StateGraph(PipelineState)

    def add(name: str, node: NodeFn, step: PipelineStep, message: str) -> None:
        graph.add_node(name, _observed(node, step=step, message=message, on_progress=on_progress))

    add(
        "load_data",
        build_load_data_node(dependencies),
        "loading_data",
        "Loading data from Google Sheets...",
    )
    add(
        "interpret_campaigns",
        build_campaign_interpreter_node(dependencies),
        "interpreting_campaigns",
        "Interpreting campaigns from MASTER...",
    )
    add(
        "synthesize_signals",
        build_signal_synthesizer_node(dependencies),
        "synthesizing_signals",
        "Analyzing product sales data...",
    )
    add(
        "select_products",
        build_product_selector_node(dependencies),
        "selecting_products",
        "Selecting products for campaigns...",
    )
    add(
        "audit_risks",
        build_risk_auditor_node(dependencies),
        "auditing_risks",
        "Auditing risks...",
    )
    add(
        "write_nominations",
        build_nomination_writer_node(dependencies),
        "writing_nominations",
        "Formatting final nominations...",
    )
    add("finalize", finalize_node, "done", "Pipeline complete")
    add("no_campaigns", no_campaigns_node, "done", "No relevant campaigns for this week")

    graph.add_edge(START, "load_data")
    graph.add_edge("load_data", "interpret_campaigns")
    graph.add_conditional_edges(
        "interpret_campaigns",
        route_after_interpretation,
        {
            "no_campaigns": "no_campaigns",
            "synthesize_signals": "synthesize_signals",
        },
    )
    graph.add_edge("synthesize_signals", "select_products")
    graph.add_edge("select_products", "audit_risks")
    graph.add_edge("audit_risks", "write_nominations")
    graph.add_edge("write_nominations", "finalize")
    graph.add_edge("finalize", END)
    graph.add_edge("no_campaigns", END)

    return graph.compile()
