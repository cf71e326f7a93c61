"""Infinite-scroll feed consumer.

Drives "load next page" from three triggers: the first mount, a proximity
signal when the reader nears the end of the list, and a manual retry. A
failed automatic load latches ``auto_fetch_halted`` so proximity signals
stop hitting the aggregator until the reader retries by hand.
"""

from __future__ import annotations

from enum import Enum
from typing import Awaitable, Callable, Optional

import structlog

from ..feed.models import Page, Post

logger = structlog.get_logger()

FALLBACK_URL = "https://bsky.app/search?q=%23meshArchive"
DEFAULT_ERROR = "Unable to load archive posts right now."

PageFetcher = Callable[[Optional[str], int], Awaitable[Page]]


class LoadSource(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


class ConsumerStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    HALTED = "halted"


class FeedConsumer:
    """Client-side pagination state over an archive page fetcher.

    Usage:
        consumer = FeedConsumer(client.fetch_page)
        await consumer.mount()
        await consumer.on_proximity()   # reader scrolled near the end
        await consumer.retry()          # after an error
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        page_size: int = 30,
        fallback_url: str = FALLBACK_URL,
    ):
        self.fetch_page = fetch_page
        self.page_size = page_size
        self.fallback_url = fallback_url

        self.posts: list[Post] = []
        self.cursor: Optional[str] = None
        self.has_more = True
        self.is_loading = False
        self.last_error: Optional[str] = None
        self.auto_fetch_halted = False
        self._initialised = False

    @property
    def status(self) -> ConsumerStatus:
        if self.is_loading:
            return ConsumerStatus.LOADING
        if self.auto_fetch_halted:
            return ConsumerStatus.HALTED
        return ConsumerStatus.IDLE

    async def mount(self) -> bool:
        """Load the first page once."""
        if self._initialised:
            return False
        return await self.load_more(LoadSource.AUTO)

    async def on_proximity(self) -> bool:
        """Reader is near the end of the rendered list."""
        if not self.has_more or self.auto_fetch_halted:
            return False
        return await self.load_more(LoadSource.AUTO)

    async def retry(self) -> bool:
        """Manual retry; the only trigger accepted while halted."""
        return await self.load_more(LoadSource.MANUAL)

    async def load_more(self, source: LoadSource = LoadSource.AUTO) -> bool:
        """Fetch and append the next page.

        Returns True when a request was made and succeeded.
        """
        if self.is_loading:
            return False
        if not self.has_more and self._initialised:
            return False
        if source is LoadSource.AUTO and self.auto_fetch_halted:
            return False

        self.is_loading = True
        self.last_error = None
        try:
            page = await self.fetch_page(self.cursor, self.page_size)
        except Exception as exc:  # noqa: BLE001
            self.last_error = str(exc) or DEFAULT_ERROR
            if source is LoadSource.AUTO:
                self.auto_fetch_halted = True
            logger.warning(
                "feed_load_failed",
                source=source.value,
                error=self.last_error,
                halted=self.auto_fetch_halted,
            )
            return False
        finally:
            self._initialised = True
            self.is_loading = False

        self.posts.extend(page.posts)
        self.cursor = page.cursor
        self.has_more = page.cursor is not None
        if source is LoadSource.MANUAL:
            self.auto_fetch_halted = False

        logger.info(
            "feed_page_loaded",
            source=source.value,
            count=len(page.posts),
            total=len(self.posts),
            has_more=self.has_more,
        )
        return True
