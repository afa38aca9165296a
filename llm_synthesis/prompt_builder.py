"""Structured prompt builders for the oracle-backed pipeline stages.

Each stage gets a fixed system instruction (rules + output schema) and a
user prompt made of labeled JSON data sections.
"""

import json
from typing import Any, Dict, List, Optional, Sequence, Type

from pydantic import BaseModel

from llm_synthesis.schema import (
    CampaignInterpretationOutput,
    NominationFormattingOutput,
    ProductSelectionOutput,
    RiskAuditOutput,
    SignalSynthesisOutput,
)

ACTUAL_WEEK_CONTEXT_LIMIT = 50
PRODUCT_ROWS_LIMIT = 500
BRAND_ROWS_LIMIT = 100
FEED_PROMPT_LIMIT = 300
SIGNAL_TOP_N = 200

_COMMON_RULES = """\
- Return strictly valid JSON matching the schema defined below.
- Do NOT include any text outside the JSON object.
- Do NOT wrap the JSON in markdown code fences.
"""

_SECTION_TEMPLATE = """\
## {title}
```json
{data}
```
"""


def _schema_block(schema: Type[BaseModel]) -> str:
    return (
        "# OUTPUT SCHEMA\n\n"
        "Your response MUST conform to this JSON schema:\n\n"
        f"```json\n{json.dumps(schema.model_json_schema(), indent=2)}\n```\n"
    )


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_jsonable(item) for key, item in value.items()}
    return value


def _section(title: str, data: Any) -> str:
    body = json.dumps(_to_jsonable(data), indent=2, ensure_ascii=False, default=str)
    return _SECTION_TEMPLATE.format(title=title, data=body)


CAMPAIGN_INTERPRETER_SYSTEM = f"""\
You are a campaign planning assistant. Interpret raw campaign rows from a
MASTER spreadsheet and extract structured campaign definitions for one week.

STRICT RULES:
- Only output campaigns relevant for the target week.
- A campaign is relevant if its week matches the target week, OR if its
  start-end date range overlaps the target week.
- Skip campaigns whose status is PAUSED, CANCELLED or DONE.
- Each campaign needs a theme, a discount type and a priority from 1 to 10
  (10 = highest).
- discount_type is one of: percentage, fixed, bogo, bundle, free_shipping, other.
- If information is missing or ambiguous, use "UNKNOWN" instead of guessing.
- Set target_category / target_brand to null when not specified.
- max_products is the number of products to nominate (at least 1).
{_COMMON_RULES}
{_schema_block(CampaignInterpretationOutput)}"""


SIGNAL_SYNTHESIZER_SYSTEM = f"""\
You are a data analyst for e-commerce campaign planning. Synthesize product
and brand sales data into a per-product scoring table.

STRICT RULES:
- revenue and purchases are aggregated over the lookback period.
- atc_rate = items added to cart / items viewed; use 0 when views are 0.
- recency_score (0-100): more recent sales activity scores higher.
- brand_strength (0-100) comes from the brand-level aggregated data.
- composite_score (0-100) blends revenue, purchases, atc_rate, recency and
  brand strength, normalized to the 0-100 range.
- item_name must be copied exactly from the product data.
- Return at most the top {SIGNAL_TOP_N} products by composite_score.
{_COMMON_RULES}
{_schema_block(SignalSynthesisOutput)}"""


PRODUCT_SELECTOR_SYSTEM = f"""\
You are a product selection engine for e-commerce campaigns. Assign the best
products to each campaign based on data signals, feed data and guardrails.

HARD RULES:
- SKU must exist in the product feed (if a feed is provided).
- Product must NOT be out of stock.
- Stock must be >= min_stock (if stock data exists).
- The same SKU must NOT appear in more than one campaign this week.
- Blacklisted SKUs must be excluded.
- Do NOT exceed max_products_per_campaign or a campaign's max_products.

SOFT SCORING FACTORS:
- Higher composite_score = better candidate.
- Match product category/brand to the campaign target category/brand.
- Penalize UNKNOWN_STOCK and UNKNOWN_MARGIN.
- Penalize products already running in the ACTUAL WEEK (discount fatigue).

RULES:
- campaign_id must be an id from the campaigns list.
- score is 0-100 suitability; reason explains the selection.
- risks lists any risk flags or uncertainties.
{_COMMON_RULES}
{_schema_block(ProductSelectionOutput)}"""


RISK_AUDITOR_SYSTEM = f"""\
You are a risk auditor for e-commerce campaign nominations. Review the
nominations and identify concrete risks.

CHECK FOR:
1. UNKNOWN_STOCK - product has no stock information
2. UNKNOWN_MARGIN - product has no margin/price data
3. DUPLICATE - SKU appears in multiple campaigns
4. LOW_JOIN_RATE - product could not be matched to feed or sales data
5. DISCOUNT_FATIGUE - product was recently in a campaign
6. BLACKLISTED - product is on the blacklist

SEVERITY LEVELS:
- HIGH: must be resolved before publishing (blacklisted, duplicate)
- MEDIUM: should be reviewed (unknown stock, discount fatigue)
- LOW: informational (unknown margin)

RULES:
- Do not invent risks that the data does not support.
- Every risk must reference a specific sku and campaign_id from the nominations.
- overall_status is OK, WARNING or FAIL; any HIGH risk means at least WARNING.
{_COMMON_RULES}
{_schema_block(RiskAuditOutput)}"""


NOMINATION_WRITER_SYSTEM = f"""\
You are a nomination formatter for e-commerce campaigns. Turn product
nominations and risk findings into final rows for the planning sheet.

STRICT RULES:
- Produce exactly one row per nomination, in nomination order.
- week is the week start date (YYYY-MM-DD).
- theme and discount_type come from the nomination's campaign.
- action describes the discount/action details for the product.
- notes carries the auditor's risk notes for that SKU (empty when none).
- status is always "ČEKÁ NA SCHVÁLENÍ".
{_COMMON_RULES}
{_schema_block(NominationFormattingOutput)}"""


class StagePromptBuilder:
    """Builds deterministic user prompts for every oracle-backed stage."""

    def campaign_interpreter(
        self,
        week_start: str,
        master_rows: Sequence[Dict[str, str]],
        actual_week_rows: Sequence[Dict[str, str]],
        max_campaigns: int,
    ) -> str:
        return (
            f"Target week start: {week_start}\n"
            f"Maximum campaigns allowed: {max_campaigns}\n\n"
            f"# PROVIDED DATA\n\n"
            + _section("Master Campaigns", list(master_rows))
            + "\n"
            + _section(
                "Actual Week (currently live, context only)",
                list(actual_week_rows)[:ACTUAL_WEEK_CONTEXT_LIMIT],
            )
            + "\n# TASK\n\n"
            f"Return the campaigns relevant for week {week_start}. Respect the "
            f"maximum of {max_campaigns} campaigns. Prioritize by importance and urgency."
        )

    def signal_synthesizer(
        self,
        product_rows: Sequence[Dict[str, str]],
        brand_rows: Sequence[Dict[str, str]],
        lookback_days: int,
    ) -> str:
        products = list(product_rows)[:PRODUCT_ROWS_LIMIT]
        brands = list(brand_rows)[:BRAND_ROWS_LIMIT]
        return (
            f"Lookback period: {lookback_days} days\n\n"
            f"# PROVIDED DATA\n\n"
            + _section(
                f"Product Sales ({len(product_rows)} rows, showing first {len(products)})",
                products,
            )
            + "\n"
            + _section(
                f"Brand Sales ({len(brand_rows)} rows, showing first {len(brands)})",
                brands,
            )
            + "\n# TASK\n\n"
            "Synthesize this data into product-level scoring signals. Return the "
            f"top {SIGNAL_TOP_N} products by composite_score."
        )

    def product_selector(
        self,
        campaigns: Sequence[Any],
        signals: Sequence[Any],
        feed_products: Optional[Sequence[Any]],
        actual_week_skus: Sequence[str],
        guardrails: Dict[str, Any],
    ) -> str:
        if feed_products is None:
            feed_section = "## Product Feed\nNO PRODUCT FEED AVAILABLE - use product signals only.\n"
        else:
            feed_section = _section(
                f"Product Feed ({len(feed_products)} products, showing first "
                f"{min(len(feed_products), FEED_PROMPT_LIMIT)})",
                list(feed_products)[:FEED_PROMPT_LIMIT],
            )
        return (
            "# PROVIDED DATA\n\n"
            + _section("Campaigns To Fill", list(campaigns))
            + "\n"
            + _section("Product Signals", list(signals))
            + "\n"
            + feed_section
            + "\n"
            + _section("Actual Week SKUs (discount fatigue)", list(actual_week_skus))
            + "\n"
            + _section("Guardrails", guardrails)
            + "\n# TASK\n\n"
            "Select the best products for each campaign. Enforce all hard rules. "
            "No duplicate SKUs across campaigns."
        )

    def risk_auditor(
        self,
        nominations: Sequence[Any],
        feed_products: Optional[Sequence[Any]],
        actual_week_skus: Sequence[str],
        blacklist_skus: Sequence[str],
    ) -> str:
        if feed_products is None:
            feed_section = "## Product Feed Reference\nNO PRODUCT FEED AVAILABLE.\n"
        else:
            feed_section = _section(
                f"Product Feed Reference ({len(feed_products)} products)",
                list(feed_products)[:FEED_PROMPT_LIMIT],
            )
        return (
            "# PROVIDED DATA\n\n"
            + _section("Nominations To Audit", list(nominations))
            + "\n"
            + feed_section
            + "\n"
            + _section("Actual Week SKUs (check for fatigue)", list(actual_week_skus))
            + "\n"
            + _section("Blacklisted SKUs", list(blacklist_skus))
            + "\n# TASK\n\nAudit all nominations for risks. Be thorough and precise."
        )

    def nomination_writer(
        self,
        week_start: str,
        nominations: Sequence[Any],
        campaigns: Sequence[Any],
        risks: Sequence[Any],
    ) -> str:
        sections: List[str] = [
            _section("Campaigns", list(campaigns)),
            _section("Product Nominations", list(nominations)),
            _section("Risk Flags", list(risks)),
        ]
        return (
            f"Week start: {week_start}\n\n"
            "# PROVIDED DATA\n\n"
            + "\n".join(sections)
            + "\n# TASK\n\n"
            "Format all nominations into final sheet rows. Include relevant risk "
            "information in notes."
        )
