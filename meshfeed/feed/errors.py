"""Error taxonomy for feed aggregation."""

from dataclasses import dataclass
from typing import Optional

AUTH_FAILURE_STATUSES = frozenset({401, 403, 404})
BODY_PREFIX_LENGTH = 200
DETAIL_SEPARATOR = " | "


def truncate(value: str, max_length: int = BODY_PREFIX_LENGTH) -> str:
    if len(value) <= max_length:
        return value
    return f"{value[:max_length]}…"


class FeedError(Exception):
    """Base exception for feed errors."""

    invalidates_session = False

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ConfigurationError(FeedError):
    """Credential inputs are not configured."""


class AuthError(FeedError):
    """Login was rejected by the upstream."""

    invalidates_session = True


class TransportError(FeedError):
    """No usable response was received."""

    invalidates_session = True


class ProviderStatusError(FeedError):
    """Provider answered with a non-success status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(body, status_code=status_code)
        self.body = body

    @property
    def invalidates_session(self) -> bool:  # type: ignore[override]
        return self.status_code in AUTH_FAILURE_STATUSES


@dataclass(frozen=True)
class ProviderFailure:
    """One recorded provider failure."""

    provider: str
    status: int
    body: str

    def describe(self) -> str:
        return f"provider={self.provider}; status={self.status}; body={truncate(self.body)}"


class UpstreamError(FeedError):
    """Every provider was exhausted without success."""

    def __init__(self, failures: list[ProviderFailure]):
        self.failures = list(failures)
        self.details = DETAIL_SEPARATOR.join(f.describe() for f in self.failures)
        status = self.failures[-1].status if self.failures else 502
        super().__init__("Failed to retrieve archive posts", status_code=status)
