"""Bearer session cache for authenticated providers.

A single session is held per manager. ``ensure_session`` and ``invalidate``
are serialized through one lock so a fresh login is never clobbered by a
concurrent invalidate.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import httpx
import structlog

from .errors import AuthError, ConfigurationError, TransportError, truncate
from .models import Session
from .providers import DEFAULT_USER_AGENT, common_headers

logger = structlog.get_logger()

LOGIN_URL = "https://bsky.social/xrpc/com.atproto.server.createSession"
DEFAULT_SESSION_TTL = timedelta(minutes=30)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_expiry(value: object) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SessionManager:
    """Obtains, caches and invalidates the bearer session.

    Usage:
        sessions = SessionManager(client, identifier, password)
        session = await sessions.ensure_session()
        await sessions.invalidate()
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        identifier: Optional[str],
        password: Optional[str],
        login_url: str = LOGIN_URL,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        user_agent: str = DEFAULT_USER_AGENT,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.client = client
        self.identifier = identifier
        self.password = password
        self.login_url = login_url
        self.ttl = ttl
        self.user_agent = user_agent
        self.clock = clock
        self._session: Optional[Session] = None
        self._lock = asyncio.Lock()

    @property
    def current(self) -> Optional[Session]:
        return self._session

    @property
    def configured(self) -> bool:
        return bool(self.identifier and self.password)

    async def ensure_session(self) -> Session:
        """Return the cached session, logging in when it is missing or expired."""
        if not self.configured:
            raise ConfigurationError(
                "Missing BLUESKY_IDENTIFIER or BLUESKY_APP_PASSWORD environment variables"
            )

        async with self._lock:
            if self._session is not None and self._session.is_valid(self.clock()):
                return self._session

            try:
                self._session = await self._login()
            except Exception:
                self._session = None
                raise
            return self._session

    async def invalidate(self) -> None:
        """Drop the cached session; safe to call repeatedly."""
        async with self._lock:
            if self._session is not None:
                logger.info("session_invalidated")
            self._session = None

    async def _login(self) -> Session:
        headers = common_headers(self.user_agent)
        headers["Content-Type"] = "application/json"

        try:
            response = await self.client.post(
                self.login_url,
                json={"identifier": self.identifier, "password": self.password},
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"Session creation failed: {exc}") from exc

        if not response.is_success:
            raise AuthError(
                f"Session creation failed ({response.status_code}): {truncate(response.text)}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise AuthError("Session creation returned invalid JSON") from exc

        token = data.get("accessJwt") if isinstance(data, dict) else None
        subject_id = data.get("did") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token or not isinstance(subject_id, str):
            raise AuthError("Session creation response missing accessJwt or did")

        expires_at = _parse_expiry(data.get("expiresAt")) or self.clock() + self.ttl
        logger.info("session_created", subject_id=subject_id, expires_at=expires_at.isoformat())
        return Session(token=token, subject_id=subject_id, expires_at=expires_at)
