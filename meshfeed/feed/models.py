"""Data models for the archive feed."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FeedModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Author(FeedModel):
    """Post author."""

    handle: str = Field(..., min_length=1)
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


class PostBody(FeedModel):
    """Textual content of a post."""

    text: Optional[str] = None
    created_at: Optional[str] = None


class MediaItem(FeedModel):
    """Image attached to a post, in display order."""

    thumbnail_url: Optional[str] = None
    full_url: Optional[str] = None
    alt_text: Optional[str] = None


class Post(FeedModel):
    """Canonical post returned by every provider."""

    uri: str = Field(..., min_length=1)
    id: str = Field(..., min_length=1)  # cid, unique within a provider
    author: Author
    body: PostBody = Field(default_factory=PostBody)
    media: list[MediaItem] = Field(default_factory=list)
    indexed_at: Optional[str] = None  # Fallback when body.created_at is missing


class Page(BaseModel):
    """One page of posts plus the cursor for the next one."""

    posts: list[Post] = Field(default_factory=list)
    cursor: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.cursor is not None


class Session(BaseModel):
    """Cached bearer credential for authenticated providers."""

    token: str
    subject_id: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        """Valid strictly before the expiry instant."""
        return now < self.expires_at
