"""Upstream search providers.

Each provider knows its own endpoint, query parameter names and response
shape. The aggregator only sees ``build_request`` and ``parse_response``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

from .models import Page, Session
from .normalizer import normalize_posts

AUTH_SEARCH_ENDPOINT = "https://bsky.social/xrpc/app.bsky.feed.searchPosts"
PUBLIC_SEARCH_ENDPOINT = "https://public.api.bsky.app/xrpc/app.bsky.feed.searchPosts"
SEARCH_API_ENDPOINT = "https://search.bsky.social/api/v1/search/posts"

DEFAULT_QUERY = "#meshArchive"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (compatible; MeshArchiveBot/1.0; +https://github.com/eilseq/p5js-editor)"
)


def common_headers(user_agent: str = DEFAULT_USER_AGENT) -> dict[str, str]:
    return {"Accept": "application/json", "User-Agent": user_agent}


@dataclass
class ProviderRequest:
    """Outbound request descriptor."""

    url: str
    method: str = "GET"
    params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)


def _cursor_of(data: Any) -> Optional[str]:
    if isinstance(data, dict) and isinstance(data.get("cursor"), str):
        return data["cursor"]
    return None


@runtime_checkable
class FeedProvider(Protocol):
    """Protocol for upstream search providers."""

    name: str  # Provider identity for logging and error details
    requires_auth: bool

    def build_request(
        self,
        page_size: int,
        cursor: Optional[str] = None,
        session: Optional[Session] = None,
    ) -> ProviderRequest:
        """Build the request for one page.

        Providers with ``requires_auth`` attach the session's bearer token.
        """
        ...

    def parse_response(self, data: Any) -> Page:
        """Turn a decoded response body into a Page; must not raise."""
        ...


class SearchPostsProvider:
    """Lexicon ``app.bsky.feed.searchPosts`` endpoint."""

    def __init__(
        self,
        endpoint: str,
        query: str = DEFAULT_QUERY,
        requires_auth: bool = False,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.name = endpoint
        self.endpoint = endpoint
        self.query = query
        self.requires_auth = requires_auth
        self.user_agent = user_agent

    def build_request(
        self,
        page_size: int,
        cursor: Optional[str] = None,
        session: Optional[Session] = None,
    ) -> ProviderRequest:
        params: dict[str, Any] = {"q": self.query, "limit": page_size}
        if cursor:
            params["cursor"] = cursor

        headers = common_headers(self.user_agent)
        if self.requires_auth and session is not None:
            headers["Authorization"] = f"Bearer {session.token}"

        return ProviderRequest(url=self.endpoint, params=params, headers=headers)

    def parse_response(self, data: Any) -> Page:
        posts = data.get("posts") if isinstance(data, dict) else None
        return Page(posts=normalize_posts(posts), cursor=_cursor_of(data))


class SearchApiProvider:
    """Legacy search service that wraps post views in ``hits``."""

    requires_auth = False

    def __init__(
        self,
        endpoint: str = SEARCH_API_ENDPOINT,
        query: str = DEFAULT_QUERY,
        sort: str = "latest",
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.name = endpoint
        self.endpoint = endpoint
        self.query = query
        self.sort = sort
        self.user_agent = user_agent

    def build_request(
        self,
        page_size: int,
        cursor: Optional[str] = None,
        session: Optional[Session] = None,
    ) -> ProviderRequest:
        params: dict[str, Any] = {"q": self.query, "sort": self.sort, "count": page_size}
        if cursor:
            params["cursor"] = cursor
        return ProviderRequest(
            url=self.endpoint,
            params=params,
            headers=common_headers(self.user_agent),
        )

    def parse_response(self, data: Any) -> Page:
        hits = data.get("hits") if isinstance(data, dict) else None
        return Page(posts=normalize_posts(hits), cursor=_cursor_of(data))


def default_providers(
    query: str = DEFAULT_QUERY,
    user_agent: str = DEFAULT_USER_AGENT,
) -> list[FeedProvider]:
    """Providers in fixed priority order."""
    return [
        SearchPostsProvider(
            AUTH_SEARCH_ENDPOINT, query=query, requires_auth=True, user_agent=user_agent
        ),
        SearchPostsProvider(PUBLIC_SEARCH_ENDPOINT, query=query, user_agent=user_agent),
        SearchApiProvider(SEARCH_API_ENDPOINT, query=query, user_agent=user_agent),
    ]
