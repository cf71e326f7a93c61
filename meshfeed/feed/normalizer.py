"""Helpers to normalize upstream JSON payloads into the canonical Post model.

Upstream schemas are not trusted: every field is checked for presence and
type before use. Entries that fail the check are dropped from the page,
never raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

import structlog

from .models import Author, MediaItem, Post, PostBody

logger = structlog.get_logger()

IMAGE_EMBED_TYPES = ("app.bsky.embed.images", "app.bsky.embed.images#view")
HIT_VIEW_KEYS = ("post", "value")


@dataclass(frozen=True)
class Valid:
    post: Post


@dataclass(frozen=True)
class Rejected:
    reason: str


NormalizeResult = Union[Valid, Rejected]


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def unwrap_hit(hit: Any) -> Any:
    """Return the post view held by a search hit, or the hit itself."""
    if not isinstance(hit, dict):
        return hit
    for key in HIT_VIEW_KEYS:
        if hit.get(key) is not None:
            return hit[key]
    return hit


def extract_media(embed: Any) -> list[MediaItem]:
    """Extract images from an image embed; any other embed yields []."""
    if not isinstance(embed, dict):
        return []
    if embed.get("$type") not in IMAGE_EMBED_TYPES:
        return []
    images = embed.get("images")
    if not isinstance(images, list):
        return []

    media: list[MediaItem] = []
    for image in images:
        if not isinstance(image, dict):
            continue
        thumb = _optional_str(image.get("thumb"))
        fullsize = _optional_str(image.get("fullsize"))
        if not thumb and not fullsize:
            continue
        media.append(
            MediaItem(
                thumbnail_url=thumb,
                full_url=fullsize,
                alt_text=_optional_str(image.get("alt")),
            )
        )
    return media


def validate(raw: Any) -> NormalizeResult:
    """Check a raw view (or search hit) and coerce it into a Post."""
    data = unwrap_hit(raw)
    if not isinstance(data, dict):
        return Rejected("not an object")
    if not _non_empty_str(data.get("uri")):
        return Rejected("missing uri")
    if not _non_empty_str(data.get("cid")):
        return Rejected("missing cid")

    author = data.get("author")
    if not isinstance(author, dict):
        return Rejected("missing author")
    if not _non_empty_str(author.get("handle")):
        return Rejected("missing author handle")

    record = data.get("record")
    if not isinstance(record, dict):
        return Rejected("missing record")

    post = Post(
        uri=data["uri"],
        id=data["cid"],
        author=Author(
            handle=author["handle"],
            display_name=_optional_str(author.get("displayName")),
            avatar_url=_optional_str(author.get("avatar")),
        ),
        body=PostBody(
            text=_optional_str(record.get("text")),
            created_at=_optional_str(record.get("createdAt")),
        ),
        media=extract_media(data.get("embed")),
        indexed_at=_optional_str(data.get("indexedAt")),
    )
    return Valid(post)


def normalize(raw: Any) -> Optional[Post]:
    """Return the Post for a raw payload, or None when it is rejected."""
    result = validate(raw)
    if isinstance(result, Valid):
        return result.post
    return None


def normalize_posts(items: Any) -> list[Post]:
    """Normalize a batch, keeping upstream order and dropping rejects."""
    if not isinstance(items, list):
        return []

    posts: list[Post] = []
    rejected = 0
    for item in items:
        result = validate(item)
        if isinstance(result, Valid):
            posts.append(result.post)
        else:
            rejected += 1
            logger.debug("post_rejected", reason=result.reason)

    if rejected:
        logger.info("posts_normalized", total=len(items), valid=len(posts), rejected=rejected)
    return posts
