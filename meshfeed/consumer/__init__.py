"""Paginated feed consumer."""

from .client import ArchiveClient, FeedRequestError, parse_page
from .feed import ConsumerStatus, FeedConsumer, LoadSource

__all__ = [
    "ArchiveClient",
    "FeedRequestError",
    "parse_page",
    "ConsumerStatus",
    "FeedConsumer",
    "LoadSource",
]
