"""
agent/nodes/load_data_node.py

Load Data Node: reads the four sheet tabs concurrently, fetches the
optional product feed, records per-source fingerprints and resolves the
client's guardrails.

Sheet read failures stop the run; a feed failure only degrades it.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from pydantic import ValidationError

from agent.errors import handle_pipeline_failure
from agent.state import PipelineDependencies, PipelineInput, PipelineState
from app.connectors.product_feed_connector import DEFAULT_FEED_MAPPING, FeedTagMapping
from app.domain.guardrails import resolve_guardrails
from app.domain.pipeline_models import FeedProduct
from app.sheets.base import SheetSnapshot

logger = logging.getLogger(__name__)

STAGE_NAME = "loading_data"

# Column names holding the SKU on the ACTUAL WEEK tab.
SKU_COLUMNS = ("SKU", "sku")


def _resolve_feed_mapping(raw: object) -> FeedTagMapping:
    if raw is None:
        return DEFAULT_FEED_MAPPING
    if isinstance(raw, FeedTagMapping):
        return raw
    try:
        return FeedTagMapping.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Invalid feed tag mapping, using defaults errors=%s", exc.errors())
        return DEFAULT_FEED_MAPPING


def _load_feed(
    dependencies: PipelineDependencies,
    pipeline_input: PipelineInput,
) -> tuple[Optional[list[FeedProduct]], Optional[str]]:
    """Return (products, fingerprint); (None, None) when no feed is configured."""
    if not pipeline_input.feed_url:
        return None, None
    if dependencies.feed is None:
        handle_pipeline_failure(
            failure_code="feed_unavailable",
            message="Feed URL configured but no feed connector available.",
            stage_name=STAGE_NAME,
            week_start=pipeline_input.week_start,
        )
        return None, "FAILED"

    mapping = _resolve_feed_mapping(pipeline_input.feed_tag_mapping)
    try:
        products = dependencies.feed.fetch_products(pipeline_input.feed_url, mapping)
    except Exception as exc:  # noqa: BLE001
        handle_pipeline_failure(
            failure_code="feed_unavailable",
            message=f"Feed load failed: {exc}",
            stage_name=STAGE_NAME,
            week_start=pipeline_input.week_start,
            cause=exc,
        )
        return None, "FAILED"
    return list(products), f"{len(products)}_products"


def build_load_data_node(
    dependencies: PipelineDependencies,
) -> Callable[[PipelineState], PipelineState]:
    def load_data_node(state: PipelineState) -> PipelineState:
        pipeline_input = state["pipeline_input"]
        sheets = dependencies.sheets
        reads = {
            "master": (pipeline_input.process_sheet_id, pipeline_input.master_tab),
            "actualWeek": (pipeline_input.process_sheet_id, pipeline_input.actual_week_tab),
            "productSales": (pipeline_input.product_sheet_id, pipeline_input.product_tab),
            "brandSales": (pipeline_input.brand_sheet_id, pipeline_input.brand_tab),
        }

        with ThreadPoolExecutor(max_workers=max(1, dependencies.loader_workers)) as executor:
            sheet_futures: dict[str, Future[SheetSnapshot]] = {
                source: executor.submit(sheets.read_range, sheet_id, tab)
                for source, (sheet_id, tab) in reads.items()
            }
            feed_future = executor.submit(_load_feed, dependencies, pipeline_input)

            snapshots: dict[str, SheetSnapshot] = {}
            for source, future in sheet_futures.items():
                sheet_id, tab = reads[source]
                try:
                    snapshots[source] = future.result()
                except Exception as exc:  # noqa: BLE001
                    handle_pipeline_failure(
                        failure_code="sheet_read_failed",
                        message=f"Failed to read sheet={sheet_id} tab={tab!r}: {exc}",
                        stage_name=STAGE_NAME,
                        week_start=pipeline_input.week_start,
                        cause=exc,
                    )
            feed_products, feed_fingerprint = feed_future.result()

        fingerprints = {source: snapshot.fingerprint for source, snapshot in snapshots.items()}
        if feed_fingerprint is not None:
            fingerprints["feed"] = feed_fingerprint

        actual_week = snapshots["actualWeek"]
        logger.info(
            "Loaded pipeline sources week=%s master_rows=%d actual_rows=%d product_rows=%d "
            "brand_rows=%d feed=%s",
            pipeline_input.week_start,
            len(snapshots["master"].rows),
            len(actual_week.rows),
            len(snapshots["productSales"].rows),
            len(snapshots["brandSales"].rows),
            fingerprints.get("feed", "none"),
        )

        return {
            **state,
            "guardrails": resolve_guardrails(pipeline_input.guardrails_raw),
            "master": snapshots["master"],
            "actual_week": actual_week,
            "product_sales": snapshots["productSales"],
            "brand_sales": snapshots["brandSales"],
            "feed_products": feed_products,
            "actual_week_skus": actual_week.column_values(*SKU_COLUMNS),
            "fingerprints": fingerprints,
        }

    return load_data_node
