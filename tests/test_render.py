"""Tests for terminal rendering of posts."""

from datetime import datetime, timezone

from meshfeed.consumer.render import (
    author_line,
    display_timestamp,
    format_relative_time,
    post_url,
    render_error,
    render_post,
)
from meshfeed.feed.models import Author, Post, PostBody
from meshfeed.feed.normalizer import normalize

from conftest import post_view

NOW = datetime(2024, 5, 1, 15, 0, tzinfo=timezone.utc)


class TestPostUrl:
    def test_permalink_from_rkey(self):
        post = normalize(post_view(1))
        assert post_url(post) == "https://bsky.app/profile/artist1.bsky.social/post/rkey1"

    def test_profile_when_rkey_missing(self):
        post = Post(uri="at://did:plc:x/app.bsky.feed.post/", id="c", author=Author(handle="x.bsky.social"))
        assert post_url(post) == "https://bsky.app/profile/x.bsky.social"


class TestRelativeTime:
    """Tests for human relative timestamps."""

    def test_past(self):
        assert format_relative_time("2024-05-01T12:00:00.000Z", now=NOW) == "3 hours ago"
        assert format_relative_time("2024-04-30T15:00:00Z", now=NOW) == "1 day ago"

    def test_future(self):
        assert format_relative_time("2024-05-03T15:00:00Z", now=NOW) == "in 2 days"

    def test_just_now(self):
        assert format_relative_time("2024-05-01T15:00:00.200Z", now=NOW) == "just now"

    def test_half_rounds_up(self):
        """Test 2.5 hours rounds away from zero like the web view."""
        assert format_relative_time("2024-05-01T12:30:00Z", now=NOW) == "3 hours ago"
        assert format_relative_time("2024-05-01T17:30:00Z", now=NOW) == "in 3 hours"

    def test_any_fraction_precision(self):
        """Test timestamps with non-standard fractional seconds still render."""
        assert format_relative_time("2024-05-01T12:00:00.12Z", now=NOW) == "3 hours ago"
        assert format_relative_time("2024-05-01T12:00:00.1234Z", now=NOW) == "3 hours ago"

    def test_invalid(self):
        assert format_relative_time("yesterday", now=NOW) == ""


class TestRenderPost:
    def test_fallback_timestamp(self):
        post = Post(uri="at://a/b/c", id="c", author=Author(handle="a"), indexed_at="2024-05-01T14:00:00Z")
        assert display_timestamp(post) == "2024-05-01T14:00:00Z"

        post.body = PostBody(created_at="2024-05-01T13:00:00Z")
        assert display_timestamp(post) == "2024-05-01T13:00:00Z"

    def test_render(self):
        raw = post_view(
            1,
            embed={"$type": "app.bsky.embed.images", "images": [{"thumb": "https://cdn.example/t", "alt": "glitch"}]},
        )

        text = render_post(normalize(raw), now=NOW)

        assert text.splitlines() == [
            "Artist 1 (@artist1.bsky.social)",
            "3 hours ago",
            "sketch #1 #meshArchive",
            "[image] glitch: https://cdn.example/t",
            "View on Bluesky: https://bsky.app/profile/artist1.bsky.social/post/rkey1",
        ]

    def test_author_line_without_display_name(self):
        post = Post(uri="at://a/b/c", id="c", author=Author(handle="solo.bsky.social"))
        assert author_line(post) == "@solo.bsky.social"

    def test_render_error(self):
        text = render_error("Request failed with 503", "https://bsky.app/search?q=%23meshArchive")
        assert "Request failed with 503. Try again" in text
        assert text.endswith("https://bsky.app/search?q=%23meshArchive")
