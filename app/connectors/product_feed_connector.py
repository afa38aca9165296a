"""
app/connectors/product_feed_connector.py

XML product feed connector (Heureka/Zboží style SHOP > SHOPITEM feeds)
with a per-client tag mapping.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections import Counter

import requests
from pydantic import BaseModel, ConfigDict

from app.config import ExternalHTTPSettings
from app.connectors.base import BaseConnector
from app.domain.pipeline_models import FeedProduct

logger = logging.getLogger(__name__)


class FeedParseError(ValueError):
    """
    Raised when a feed body is not well-formed XML.
    """


class FeedTagMapping(BaseModel):
    """
    Tag names locating each product field; dotted paths address nested tags.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    root: str = "SHOP"
    item: str = "SHOPITEM"
    sku: str = "ITEM_ID"
    name: str = "PRODUCTNAME"
    category: str = "CATEGORYTEXT"
    brand: str = "MANUFACTURER"
    price: str = "PRICE_VAT"
    availability: str = "DELIVERY_DATE"
    url: str = "URL"
    stock: str | None = "STOCK"


DEFAULT_FEED_MAPPING = FeedTagMapping()


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(node: ET.Element, local_name: str) -> ET.Element | None:
    for child in list(node):
        if _local_name(child.tag) == local_name:
            return child
    return None


def _lookup(item: ET.Element, path: str) -> str:
    node: ET.Element | None = item
    for part in path.split("."):
        if node is None:
            return ""
        node = _child(node, part)
    if node is None or node.text is None:
        return ""
    return node.text.strip()


def _parse_price(raw: str) -> float:
    cleaned = raw.replace("\u00a0", "").replace(" ", "").replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def _parse_stock(raw: str) -> int | None:
    if not raw:
        return None
    try:
        return int(float(raw.replace(",", ".")))
    except ValueError:
        return None


def _find_items(root: ET.Element, mapping: FeedTagMapping) -> list[ET.Element]:
    """
    Items under the mapped root/item tags, else the first repeated child tag.
    """

    if _local_name(root.tag) == mapping.root:
        items = [child for child in list(root) if _local_name(child.tag) == mapping.item]
        if items:
            return items

    counts = Counter(_local_name(child.tag) for child in list(root))
    for tag, count in counts.items():
        if count > 1:
            logger.info("Feed item tag %r not found, falling back to repeated tag %r", mapping.item, tag)
            return [child for child in list(root) if _local_name(child.tag) == tag]
    return []


def parse_feed_xml(payload: bytes | str, mapping: FeedTagMapping = DEFAULT_FEED_MAPPING) -> list[FeedProduct]:
    """
    Parse a feed document into products; missing fields take empty defaults.
    """

    try:
        root = ET.fromstring(payload)
    except ET.ParseError as exc:
        raise FeedParseError(f"Feed is not well-formed XML: {exc}") from exc

    products: list[FeedProduct] = []
    skipped = 0
    for item in _find_items(root, mapping):
        sku = _lookup(item, mapping.sku)
        if not sku:
            skipped += 1
            continue
        products.append(
            FeedProduct(
                sku=sku,
                name=_lookup(item, mapping.name),
                category=_lookup(item, mapping.category),
                brand=_lookup(item, mapping.brand),
                price=_parse_price(_lookup(item, mapping.price)),
                availability=_lookup(item, mapping.availability),
                url=_lookup(item, mapping.url),
                stock=_parse_stock(_lookup(item, mapping.stock)) if mapping.stock else None,
            )
        )

    if skipped:
        logger.warning("Skipped feed items without SKU count=%d", skipped)
    return products


class ProductFeedConnector(BaseConnector):
    """
    Fetches and parses a client's product feed.
    """

    def __init__(
        self,
        *,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source="product_feed", http_settings=http_settings, session=session)

    def fetch_products(
        self,
        feed_url: str,
        mapping: FeedTagMapping | None = None,
    ) -> list[FeedProduct]:
        payload = self._get_bytes(feed_url, accept="application/xml, text/xml")
        products = parse_feed_xml(payload, mapping or DEFAULT_FEED_MAPPING)
        logger.info("Fetched product feed url=%s products=%d", feed_url, len(products))
        return products
