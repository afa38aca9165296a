"""
agent/selection_rules.py

Hard rules applied to oracle-proposed nominations.

The oracle is told these rules but never trusted with them; this filter
is authoritative. It is a strict narrowing: nominations are kept or
dropped in their given order, never added, reordered or rescored.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from app.domain.guardrails import Guardrails
from app.domain.pipeline_models import FeedProduct, ProductNomination

logger = logging.getLogger(__name__)


def rejection_reason(
    nomination: ProductNomination,
    *,
    blacklist: frozenset[str],
    used_skus: set[str],
    feed_index: dict[str, FeedProduct] | None,
    min_stock: int,
) -> str | None:
    """
    First hard rule a nomination breaks, or None when it is acceptable.
    """

    sku = nomination.sku
    if sku in blacklist:
        return "blacklisted"
    if sku in used_skus:
        return "duplicate_sku"
    if feed_index is None:
        return None

    feed_item = feed_index.get(sku)
    if feed_item is None:
        return "not_in_feed"
    if feed_item.is_out_of_stock:
        return "out_of_stock"
    if feed_item.stock is not None and feed_item.stock < min_stock:
        return "below_min_stock"
    return None


def apply_hard_rules(
    nominations: Sequence[ProductNomination],
    guardrails: Guardrails,
    feed_products: Sequence[FeedProduct] | None,
) -> list[ProductNomination]:
    """
    Filter nominations in order; first-seen SKU wins across campaigns.

    ``feed_products=None`` means no feed is configured (or it failed to
    load) and feed membership and stock rules are skipped.
    """

    feed_index: dict[str, FeedProduct] | None = None
    if feed_products is not None:
        feed_index = {}
        for product in feed_products:
            feed_index.setdefault(product.sku, product)

    blacklist = guardrails.blacklist
    used_skus: set[str] = set()
    accepted: list[ProductNomination] = []

    for nomination in nominations:
        reason = rejection_reason(
            nomination,
            blacklist=blacklist,
            used_skus=used_skus,
            feed_index=feed_index,
            min_stock=guardrails.min_stock,
        )
        if reason is not None:
            logger.debug(
                "Dropped nomination sku=%s campaign=%s rule=%s",
                nomination.sku,
                nomination.campaign_id,
                reason,
            )
            continue
        used_skus.add(nomination.sku)
        accepted.append(nomination)

    if len(accepted) < len(nominations):
        logger.info(
            "Hard rules dropped nominations proposed=%d accepted=%d",
            len(nominations),
            len(accepted),
        )
    return accepted
