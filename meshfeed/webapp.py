"""HTTP surface for the archive feed.

Endpoints:
- GET /api/archive?cursor=&limit=  one normalized page, never cached
- GET /health                       liveness probe

The aggregator and its httpx client are created on startup unless one was
injected into ``create_app``.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .feed import FeedAggregator, Page, SessionManager, UpstreamError, default_providers, parse_limit
from .utils.config import Settings, get_settings

logger = structlog.get_logger()

NO_STORE = {"Cache-Control": "no-store"}


def create_http_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Outbound client shared by providers and the session manager; follows redirects."""
    return httpx.AsyncClient(
        timeout=settings.request_timeout_seconds,
        follow_redirects=True,
        transport=transport,
    )


def create_aggregator(settings: Settings, client: httpx.AsyncClient) -> FeedAggregator:
    """Wire the default providers and a session manager around one client."""
    sessions = SessionManager(
        client,
        identifier=settings.bluesky_identifier,
        password=settings.bluesky_app_password,
        ttl=timedelta(minutes=settings.session_ttl_minutes),
        user_agent=settings.user_agent,
    )
    providers = default_providers(query=settings.archive_query, user_agent=settings.user_agent)
    return FeedAggregator(providers, sessions, client)


def page_payload(page: Page) -> dict:
    return {
        "cursor": page.cursor,
        "posts": [post.model_dump(by_alias=True, exclude_none=True) for post in page.posts],
    }


def create_app(
    settings: Optional[Settings] = None,
    aggregator: Optional[FeedAggregator] = None,
) -> FastAPI:
    """Build the FastAPI application."""
    settings = settings or get_settings()
    app = FastAPI(title="MESH Archive Feed")
    app.state.aggregator = aggregator
    app.state.http_client = None

    @app.on_event("startup")
    async def startup_event() -> None:
        if app.state.aggregator is not None:
            return
        app.state.http_client = create_http_client(settings)
        app.state.aggregator = create_aggregator(settings, app.state.http_client)
        logger.info(
            "aggregator_started",
            providers=[p.name for p in app.state.aggregator.providers],
            auth_configured=app.state.aggregator.sessions.configured,
        )

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        if app.state.http_client is not None:
            await app.state.http_client.aclose()
            app.state.http_client = None

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    @app.get("/api/archive")
    async def archive(request: Request, cursor: Optional[str] = None, limit: Optional[str] = None):
        """Return one page of archive posts."""
        aggregator: FeedAggregator = request.app.state.aggregator
        effective_limit = parse_limit(limit)

        try:
            page = await aggregator.fetch_page(effective_limit, cursor or None)
        except UpstreamError as exc:
            return JSONResponse(
                status_code=exc.status_code or 502,
                content={"error": exc.message, "details": exc.details},
                headers=NO_STORE,
            )

        logger.info("archive_page_served", count=len(page.posts), has_more=page.has_more)
        return JSONResponse(content=page_payload(page), headers=NO_STORE)

    return app
