"""
app/domain/pipeline_models.py

Value records exchanged between pipeline stages.

Every record is frozen: a stage produces a new collection instead of
mutating the one it received.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

PENDING_APPROVAL_STATUS = "ČEKÁ NA SCHVÁLENÍ"

_OUT_OF_STOCK_VALUES = frozenset({"out_of_stock", "out of stock", "outofstock", "sold_out"})


class RiskKind(str, Enum):
    UNKNOWN_STOCK = "UNKNOWN_STOCK"
    UNKNOWN_MARGIN = "UNKNOWN_MARGIN"
    DUPLICATE = "DUPLICATE"
    LOW_JOIN_RATE = "LOW_JOIN_RATE"
    DISCOUNT_FATIGUE = "DISCOUNT_FATIGUE"
    BLACKLISTED = "BLACKLISTED"


class Severity(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class OverallStatus(str, Enum):
    OK = "OK"
    WARNING = "WARNING"
    FAIL = "FAIL"


class _FrozenRecord(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
    )


class FeedProduct(_FrozenRecord):
    """One catalog item from the client's XML product feed."""

    sku: str
    name: str = ""
    category: str = ""
    brand: str = ""
    price: float = 0.0
    availability: str = ""
    url: str = ""
    stock: int | None = None

    @property
    def is_out_of_stock(self) -> bool:
        normalized = self.availability.strip().lower().replace("-", "_")
        return normalized in _OUT_OF_STOCK_VALUES


class CampaignIntent(_FrozenRecord):
    """Structured campaign definition for the target week."""

    id: str = Field(min_length=1)
    theme: str
    discount_type: str
    constraints: tuple[str, ...] = ()
    priority: int = Field(ge=1, le=10)
    target_category: str | None = None
    target_brand: str | None = None
    max_products: int = Field(ge=1)


class ProductSignal(_FrozenRecord):
    """Per-product desirability signal keyed by item name, not SKU."""

    item_name: str = Field(min_length=1)
    revenue: float = Field(ge=0.0)
    purchases: float = Field(ge=0.0)
    atc_rate: float = Field(ge=0.0, le=1.0)
    recency_score: float = Field(ge=0.0, le=100.0)
    brand_strength: float = Field(ge=0.0, le=100.0)
    composite_score: float = Field(ge=0.0, le=100.0)


class ProductNomination(_FrozenRecord):
    campaign_id: str = Field(min_length=1)
    sku: str = Field(min_length=1)
    product_name: str
    reason: str
    score: float
    risks: tuple[str, ...] = ()


class RiskFinding(_FrozenRecord):
    """One audited risk, always anchored to a SKU and campaign pair."""

    sku: str = Field(min_length=1)
    campaign_id: str = Field(min_length=1)
    kind: RiskKind
    severity: Severity
    message: str


class NominationRow(_FrozenRecord):
    """Final NEXT WEEK sheet row."""

    week: str
    theme: str
    discount_type: str
    sku: str
    product_name: str
    reason: str
    action: str
    status: str = PENDING_APPROVAL_STATUS
    notes: str = ""

    def to_sheet_values(self) -> list[str]:
        return [
            self.week,
            self.theme,
            self.discount_type,
            self.sku,
            self.product_name,
            self.reason,
            self.action,
            self.status,
            self.notes,
        ]


class PipelineStats(_FrozenRecord):
    campaign_count: int = 0
    product_count: int = 0
    unique_skus: int = 0
    join_rate: float = 0.0


class PipelineResult(_FrozenRecord):
    """Everything one pipeline execution produced, in stage order."""

    campaigns: tuple[CampaignIntent, ...] = ()
    signals: tuple[ProductSignal, ...] = ()
    nominations: tuple[ProductNomination, ...] = ()
    risks: tuple[RiskFinding, ...] = ()
    final_rows: tuple[NominationRow, ...] = ()
    stats: PipelineStats = PipelineStats()
    fingerprints: dict[str, str] = Field(default_factory=dict)
    overall_status: OverallStatus = OverallStatus.OK
