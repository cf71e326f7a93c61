"""Plain-text rendering of archive posts for the terminal browser."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

from ..feed.models import Post

PROFILE_BASE_URL = "https://bsky.app/profile"

_DIVISIONS = (
    ("year", 60 * 60 * 24 * 365),
    ("month", 60 * 60 * 24 * 30),
    ("week", 60 * 60 * 24 * 7),
    ("day", 60 * 60 * 24),
    ("hour", 60 * 60),
    ("minute", 60),
    ("second", 1),
)


def post_url(post: Post) -> str:
    """Permalink to the post on the upstream's own site."""
    handle = post.author.handle
    rkey = post.uri.rsplit("/", 1)[-1]
    if not rkey:
        return f"{PROFILE_BASE_URL}/{handle}"
    return f"{PROFILE_BASE_URL}/{handle}/post/{rkey}"


def display_timestamp(post: Post) -> Optional[str]:
    return post.body.created_at or post.indexed_at


def _parse_iso(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_relative_time(value: str, now: Optional[datetime] = None) -> str:
    """Human relative time such as "3 hours ago" or "in 2 days"."""
    moment = _parse_iso(value)
    if moment is None:
        return ""

    now = now or datetime.now(timezone.utc)
    diff = (moment - now).total_seconds()

    for unit, seconds in _DIVISIONS:
        delta = diff / seconds
        if abs(delta) >= 1:
            amount = math.floor(abs(delta) + 0.5)
            label = unit if amount == 1 else f"{unit}s"
            return f"in {amount} {label}" if delta > 0 else f"{amount} {label} ago"

    return "just now"


def author_line(post: Post) -> str:
    if post.author.display_name:
        return f"{post.author.display_name} (@{post.author.handle})"
    return f"@{post.author.handle}"


def render_post(post: Post, now: Optional[datetime] = None) -> str:
    lines = [author_line(post)]

    timestamp = display_timestamp(post)
    if timestamp:
        relative = format_relative_time(timestamp, now=now)
        if relative:
            lines.append(relative)

    if post.body.text:
        lines.append(post.body.text)

    for item in post.media:
        url = item.thumbnail_url or item.full_url
        lines.append(f"[image] {item.alt_text or 'Bluesky attachment'}: {url}")

    lines.append(f"View on Bluesky: {post_url(post)}")
    return "\n".join(lines)


def render_error(message: str, fallback_url: str) -> str:
    return "\n".join(
        [
            "Couldn't load the archive.",
            f"{message}. Try again or open the feed directly on Bluesky.",
            "Press 'r' to retry loading.",
            f"View on Bluesky: {fallback_url}",
        ]
    )
