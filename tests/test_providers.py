"""Tests for upstream provider adapters."""

from datetime import datetime, timezone

from meshfeed.feed.models import Session
from meshfeed.feed.providers import (
    AUTH_SEARCH_ENDPOINT,
    PUBLIC_SEARCH_ENDPOINT,
    SEARCH_API_ENDPOINT,
    FeedProvider,
    SearchApiProvider,
    SearchPostsProvider,
    default_providers,
)

from conftest import post_view

SESSION = Session(
    token="jwt-abc",
    subject_id="did:plc:bot",
    expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
)


class TestSearchPostsProvider:
    """Tests for the lexicon searchPosts provider."""

    def test_build_request(self):
        """Test query, page size and cursor parameter names."""
        provider = SearchPostsProvider(PUBLIC_SEARCH_ENDPOINT)

        request = provider.build_request(25, "c1")

        assert request.method == "GET"
        assert request.url == PUBLIC_SEARCH_ENDPOINT
        assert request.params == {"q": "#meshArchive", "limit": 25, "cursor": "c1"}
        assert request.headers["Accept"] == "application/json"
        assert "MeshArchiveBot" in request.headers["User-Agent"]
        assert "Authorization" not in request.headers

    def test_build_request_without_cursor(self):
        """Test the cursor parameter is omitted on the first page."""
        request = SearchPostsProvider(PUBLIC_SEARCH_ENDPOINT).build_request(30)
        assert "cursor" not in request.params

    def test_authenticated_request_carries_bearer(self):
        """Test providers requiring auth attach the session token."""
        provider = SearchPostsProvider(AUTH_SEARCH_ENDPOINT, requires_auth=True)

        request = provider.build_request(10, session=SESSION)

        assert request.headers["Authorization"] == "Bearer jwt-abc"

    def test_public_provider_ignores_session(self):
        """Test a public provider never sends credentials."""
        request = SearchPostsProvider(PUBLIC_SEARCH_ENDPOINT).build_request(10, session=SESSION)
        assert "Authorization" not in request.headers

    def test_parse_response(self):
        """Test posts are normalized and the cursor is kept."""
        provider = SearchPostsProvider(PUBLIC_SEARCH_ENDPOINT)

        page = provider.parse_response({"cursor": "next", "posts": [post_view(1), {"bad": 1}, post_view(2)]})

        assert [p.id for p in page.posts] == ["cid1", "cid2"]
        assert page.cursor == "next"
        assert page.has_more

    def test_parse_response_unexpected_shape(self):
        """Test odd bodies produce an empty final page."""
        provider = SearchPostsProvider(PUBLIC_SEARCH_ENDPOINT)

        for data in (None, [], {"posts": "x", "cursor": 5}):
            page = provider.parse_response(data)
            assert page.posts == []
            assert page.cursor is None


class TestSearchApiProvider:
    """Tests for the hits-based search service provider."""

    def test_build_request(self):
        """Test its own parameter names and sort order."""
        request = SearchApiProvider().build_request(12, "abc")

        assert request.url == SEARCH_API_ENDPOINT
        assert request.params == {"q": "#meshArchive", "sort": "latest", "count": 12, "cursor": "abc"}

    def test_parse_hits(self):
        """Test hits are unwrapped before normalization."""
        data = {"hits": [{"post": post_view(1)}, {"value": post_view(2)}, post_view(3), 7]}

        page = SearchApiProvider().parse_response(data)

        assert [p.id for p in page.posts] == ["cid1", "cid2", "cid3"]
        assert page.cursor is None


class TestDefaultProviders:
    """Tests for the fixed provider priority list."""

    def test_priority_order(self):
        """Test the authenticated endpoint comes first."""
        providers = default_providers(query="#other")

        assert [p.name for p in providers] == [
            AUTH_SEARCH_ENDPOINT,
            PUBLIC_SEARCH_ENDPOINT,
            SEARCH_API_ENDPOINT,
        ]
        assert [p.requires_auth for p in providers] == [True, False, False]
        assert all(isinstance(p, FeedProvider) for p in providers)
        assert providers[2].build_request(1).params["q"] == "#other"
