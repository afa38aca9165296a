"""
app/domain package marker.
"""

from app.domain.guardrails import DEFAULT_GUARDRAILS, Guardrails, merge_guardrails, resolve_guardrails
from app.domain.pipeline_models import (
    PENDING_APPROVAL_STATUS,
    CampaignIntent,
    FeedProduct,
    NominationRow,
    OverallStatus,
    PipelineResult,
    PipelineStats,
    ProductNomination,
    ProductSignal,
    RiskFinding,
    RiskKind,
    Severity,
)

__all__ = [
    "CampaignIntent",
    "DEFAULT_GUARDRAILS",
    "FeedProduct",
    "Guardrails",
    "NominationRow",
    "OverallStatus",
    "PENDING_APPROVAL_STATUS",
    "PipelineResult",
    "PipelineStats",
    "ProductNomination",
    "ProductSignal",
    "RiskFinding",
    "RiskKind",
    "Severity",
    "merge_guardrails",
    "resolve_guardrails",
]
