"""Feed aggregation: models, normalization, providers, sessions."""

from .aggregator import FeedAggregator, parse_limit
from .errors import (
    AuthError,
    ConfigurationError,
    FeedError,
    ProviderFailure,
    ProviderStatusError,
    TransportError,
    UpstreamError,
)
from .models import Author, MediaItem, Page, Post, PostBody, Session
from .normalizer import normalize, normalize_posts, validate
from .providers import FeedProvider, SearchApiProvider, SearchPostsProvider, default_providers
from .session import SessionManager

__all__ = [
    "FeedAggregator",
    "parse_limit",
    "AuthError",
    "ConfigurationError",
    "FeedError",
    "ProviderFailure",
    "ProviderStatusError",
    "TransportError",
    "UpstreamError",
    "Author",
    "MediaItem",
    "Page",
    "Post",
    "PostBody",
    "Session",
    "normalize",
    "normalize_posts",
    "validate",
    "FeedProvider",
    "SearchApiProvider",
    "SearchPostsProvider",
    "default_providers",
    "SessionManager",
]
