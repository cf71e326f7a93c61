"""Feed aggregation across upstream providers.

Providers are tried strictly in priority order. The first provider that
answers successfully wins, even with an empty page. Authenticated providers
get one immediate retry after a credential failure.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

import httpx
import structlog

from .errors import (
    ConfigurationError,
    FeedError,
    ProviderFailure,
    ProviderStatusError,
    TransportError,
    UpstreamError,
)
from .models import Page
from .providers import FeedProvider
from .session import SessionManager

logger = structlog.get_logger()

DEFAULT_LIMIT = 30
MAX_LIMIT = 50

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_limit(raw: Optional[str]) -> int:
    """Parse the ``limit`` query value and clamp it to [1, MAX_LIMIT]."""
    if raw is None:
        return DEFAULT_LIMIT
    match = _LEADING_INT.match(str(raw))
    if not match:
        return DEFAULT_LIMIT
    return min(max(int(match.group(1)), 1), MAX_LIMIT)


class FeedAggregator:
    """Fetch one normalized page from the first provider that answers."""

    def __init__(
        self,
        providers: Sequence[FeedProvider],
        sessions: SessionManager,
        client: httpx.AsyncClient,
    ):
        self.providers = tuple(providers)
        self.sessions = sessions
        self.client = client

    async def fetch_page(self, limit: int = DEFAULT_LIMIT, cursor: Optional[str] = None) -> Page:
        """Return the first successful page.

        Raises:
            UpstreamError: every provider failed.
        """
        failures: list[ProviderFailure] = []

        for provider in self.providers:
            max_attempts = 2 if provider.requires_auth else 1

            for attempt in range(1, max_attempts + 1):
                can_retry = provider.requires_auth and attempt < max_attempts
                try:
                    page = await self._attempt(provider, limit, cursor)
                except ConfigurationError as exc:
                    logger.warning("provider_not_configured", provider=provider.name, error=exc.message)
                    failures.append(ProviderFailure(provider.name, 502, exc.message))
                    break
                except FeedError as exc:
                    if can_retry and exc.invalidates_session:
                        logger.info(
                            "provider_auth_retry",
                            provider=provider.name,
                            attempt=attempt,
                            status_code=exc.status_code,
                        )
                        await self.sessions.invalidate()
                        continue

                    status = exc.status_code if isinstance(exc, ProviderStatusError) else 502
                    logger.warning(
                        "provider_failed",
                        provider=provider.name,
                        attempt=attempt,
                        status_code=status,
                        error=exc.message[:200],
                    )
                    failures.append(ProviderFailure(provider.name, status, exc.message))
                    break

                logger.info(
                    "provider_page_fetched",
                    provider=provider.name,
                    attempt=attempt,
                    count=len(page.posts),
                    has_more=page.has_more,
                )
                return page

        error = UpstreamError(failures)
        logger.error("providers_exhausted", status_code=error.status_code, failures=len(failures))
        raise error

    async def _attempt(
        self,
        provider: FeedProvider,
        limit: int,
        cursor: Optional[str],
    ) -> Page:
        session = await self.sessions.ensure_session() if provider.requires_auth else None
        request = provider.build_request(limit, cursor, session=session)

        logger.debug("provider_request", provider=provider.name, method=request.method, url=request.url)
        try:
            response = await self.client.request(
                request.method,
                request.url,
                params=request.params,
                headers=request.headers,
            )
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            raise ProviderStatusError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError(f"Invalid JSON from provider: {exc}") from exc

        return provider.parse_response(data)
