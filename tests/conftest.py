"""Shared fixtures: raw upstream payloads and a fake HTTP upstream."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable

import httpx
import pytest

LOGIN_URL = "https://bsky.social/xrpc/com.atproto.server.createSession"


def post_view(n: int, **overrides: Any) -> dict[str, Any]:
    """Raw searchPosts post view as Bluesky returns it."""
    view = {
        "uri": f"at://did:plc:author{n}/app.bsky.feed.post/rkey{n}",
        "cid": f"cid{n}",
        "author": {
            "did": f"did:plc:author{n}",
            "handle": f"artist{n}.bsky.social",
            "displayName": f"Artist {n}",
            "avatar": f"https://cdn.example/avatar{n}.jpg",
        },
        "record": {"text": f"sketch #{n} #meshArchive", "createdAt": "2024-05-01T12:00:00.000Z"},
        "indexedAt": "2024-05-01T12:00:01.000Z",
    }
    view.update(overrides)
    return view


class FakeUpstream:
    """Route requests by URL to queued handlers and record every call."""

    def __init__(self):
        self.routes: dict[str, list[Callable[[httpx.Request], httpx.Response]]] = defaultdict(list)
        self.calls: list[httpx.Request] = []

    def add(self, url: str, *responders: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[url].extend(responders)

    def count(self, url: str) -> int:
        return sum(1 for request in self.calls if str(request.url).split("?")[0] == url)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        url = str(request.url).split("?")[0]
        queue = self.routes.get(url)
        if not queue:
            return httpx.Response(500, text=f"unexpected request to {url}")
        responder = queue.pop(0) if len(queue) > 1 else queue[0]
        return responder(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


def json_response(payload: Any, status: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(status, json=payload)


def text_response(body: str, status: int) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(status, text=body)


def connect_error(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def login_ok(token: str = "token-1", **extra: Any) -> Callable[[httpx.Request], httpx.Response]:
    return json_response({"accessJwt": token, "did": "did:plc:bot", **extra})


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()
