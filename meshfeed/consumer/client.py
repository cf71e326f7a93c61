"""Async client for the aggregator's archive endpoint."""

from __future__ import annotations

from typing import Optional

import httpx
import structlog
from pydantic import ValidationError

from ..feed.models import Page, Post

logger = structlog.get_logger()


class FeedRequestError(Exception):
    """The archive endpoint did not return a page."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


def parse_page(data: object) -> Page:
    """Rebuild a Page from the endpoint's JSON, dropping invalid posts."""
    if not isinstance(data, dict):
        return Page()

    raw_posts = data.get("posts")
    posts: list[Post] = []
    for item in raw_posts if isinstance(raw_posts, list) else []:
        try:
            posts.append(Post.model_validate(item))
        except ValidationError:
            logger.debug("consumer_post_dropped")
            continue

    cursor = data.get("cursor")
    return Page(posts=posts, cursor=cursor if isinstance(cursor, str) and cursor else None)


class ArchiveClient:
    """Fetch archive pages over HTTP.

    Usage:
        async with ArchiveClient("http://localhost:8080/api/archive") as client:
            page = await client.fetch_page(limit=30)
    """

    def __init__(self, url: str, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def open(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ArchiveClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")
        return self._client

    async def fetch_page(self, cursor: Optional[str] = None, limit: int = 30) -> Page:
        params: dict[str, str] = {"limit": str(limit)}
        if cursor:
            params["cursor"] = cursor

        try:
            response = await self.client.get(self.url, params=params)
        except httpx.HTTPError as exc:
            raise FeedRequestError(str(exc) or "Unable to load archive posts right now.") from exc

        if not response.is_success:
            raise FeedRequestError(
                f"Request failed with {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise FeedRequestError("Archive returned an invalid response") from exc

        return parse_page(data)
