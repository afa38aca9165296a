"""Structured output envelopes for each oracle-backed stage.

The oracle answers with one JSON object per call; these models are the
only shapes accepted from it.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.pipeline_models import (
    CampaignIntent,
    OverallStatus,
    ProductNomination,
    ProductSignal,
    RiskFinding,
)


class _Envelope(BaseModel):
    model_config = ConfigDict(frozen=True)


class CampaignInterpretationOutput(_Envelope):
    campaigns: List[CampaignIntent]


class SignalSynthesisOutput(_Envelope):
    signals: List[ProductSignal]


class ProductSelectionOutput(_Envelope):
    nominations: List[ProductNomination]


class RiskSummary(_Envelope):
    total_risks: int = Field(ge=0)
    high_count: int = Field(ge=0)
    medium_count: int = Field(ge=0)
    low_count: int = Field(ge=0)
    overall_status: OverallStatus


class RiskAuditOutput(_Envelope):
    risks: List[RiskFinding]
    summary: RiskSummary


class FormattedRow(_Envelope):
    """Row as the formatter returns it; status is overridden downstream."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    week: str
    theme: str
    discount_type: str
    sku: str
    product_name: str
    reason: str
    action: str
    status: Optional[str] = None
    notes: str = ""


class NominationFormattingOutput(_Envelope):
    rows: List[FormattedRow]
