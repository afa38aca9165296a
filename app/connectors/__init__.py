"""
app/connectors package marker.
"""

from app.connectors.base import BaseConnector, ConnectorRequestError
from app.connectors.product_feed_connector import (
    DEFAULT_FEED_MAPPING,
    FeedParseError,
    FeedTagMapping,
    ProductFeedConnector,
    parse_feed_xml,
)

__all__ = [
    "BaseConnector",
    "ConnectorRequestError",
    "DEFAULT_FEED_MAPPING",
    "FeedParseError",
    "FeedTagMapping",
    "ProductFeedConnector",
    "parse_feed_xml",
]
