"""
agent/state.py

LangGraph state schema and run inputs for the weekly nomination pipeline.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Mapping, Optional, Union

from typing_extensions import TypedDict

from app.connectors.product_feed_connector import FeedTagMapping, ProductFeedConnector
from app.domain.guardrails import Guardrails
from app.domain.pipeline_models import (
    CampaignIntent,
    FeedProduct,
    NominationRow,
    OverallStatus,
    PipelineResult,
    ProductNomination,
    ProductSignal,
    RiskFinding,
)
from app.sheets.base import SheetSnapshot, SheetsGateway
from llm_synthesis.client import StructuredLLMClient
from llm_synthesis.prompt_builder import StagePromptBuilder

PipelineStep = Literal[
    "loading_data",
    "interpreting_campaigns",
    "synthesizing_signals",
    "selecting_products",
    "auditing_risks",
    "writing_nominations",
    "done",
]


@dataclass(frozen=True)
class PipelineProgress:
    step: PipelineStep
    message: str


ProgressCallback = Callable[[PipelineProgress], None]


@dataclass(frozen=True)
class PipelineInput:
    """Where one client's sources live and which week to plan."""

    week_start: str
    process_sheet_id: str
    master_tab: str
    actual_week_tab: str
    product_sheet_id: str
    product_tab: str
    brand_sheet_id: str
    brand_tab: str
    feed_url: Optional[str] = None
    feed_tag_mapping: Optional[Union[FeedTagMapping, Mapping[str, Any]]] = None
    guardrails_raw: Any = None


@dataclass
class PipelineDependencies:
    """Collaborators bound into the graph nodes at build time."""

    sheets: SheetsGateway
    llm: StructuredLLMClient
    feed: Optional[ProductFeedConnector] = None
    prompts: StagePromptBuilder = field(default_factory=StagePromptBuilder)
    loader_workers: int = 5


class PipelineState(TypedDict, total=False):
    """Shared state passed between all nodes in the pipeline graph."""

    pipeline_input: PipelineInput
    guardrails: Guardrails

    master: SheetSnapshot
    actual_week: SheetSnapshot
    product_sales: SheetSnapshot
    brand_sales: SheetSnapshot
    feed_products: Optional[list[FeedProduct]]
    actual_week_skus: list[str]
    fingerprints: dict[str, str]

    campaigns: list[CampaignIntent]
    signals: list[ProductSignal]
    nominations: list[ProductNomination]
    risks: list[RiskFinding]
    overall_status: OverallStatus
    final_rows: list[NominationRow]

    result: PipelineResult
