from __future__ import annotations

import copy
from typing import Callable

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from sitefeeds.feeds import (
    FeedKind,
    FeedService,
    GithubAdapter,
    GoodreadsAdapter,
    LastfmAdapter,
    PhotosAdapter,
    ResponseCache,
)
from sitefeeds.main import create_app


LASTFM_URL = "https://ws.audioscrobbler.test/2.0/"
GOODREADS_URL = "https://goodreads.test"
GITHUB_URL = "https://api.github.test"
PHOTOS_URL = "https://photos.test/photos.json"

TTLS = {
    FeedKind.TRACKS: 150.0,
    FeedKind.CURRENTLY_READING: 86400.0,
    FeedKind.COMMITS: 300.0,
    FeedKind.PHOTOS: 3600.0,
}

LASTFM_PAYLOAD = {
    "recenttracks": {
        "track": [
            {
                "artist": {"mbid": "", "#text": "Daft Punk"},
                "name": "Veridis Quo",
                "url": "https://www.last.fm/music/Daft+Punk/_/Veridis+Quo",
                "@attr": {"nowplaying": "true"},
            },
            {
                "artist": {"mbid": "", "#text": "Air"},
                "name": "La Femme d'Argent",
                "url": "https://www.last.fm/music/Air/_/La+Femme+d%27Argent",
                "date": {"uts": "1700000000", "#text": "14 Nov 2023, 22:13"},
            },
        ],
        "@attr": {"user": "TinyGuy", "page": "1"},
    }
}

GOODREADS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<GoodreadsResponse>
  <user>
    <id>27549920</id>
    <updates type="array">
      <update type="readstatus">
        <updated_at>Sat, 24 Jan 2026 03:05:48 -0800</updated_at>
        <object>
          <read_status>
            <id type="integer">10449998545</id>
            <old_status nil="true" />
            <status>currently-reading</status>
            <review>
              <id type="integer">8294180710</id>
              <review nil="true" />
              <created_at type="dateTime">2026-01-24T11:05:48+00:00</created_at>
              <book>
                <id type="integer">49644992</id>
                <title>The Price of Peace: Money, Democracy, and the Life of John Maynard Keynes</title>
                <author>
                  <id type="integer">19520407</id>
                  <name>Zachary D. Carter</name>
                </author>
              </book>
            </review>
          </read_status>
        </object>
      </update>
      <update type="readstatus">
        <object>
          <read_status>
            <status>read</status>
            <review>
              <created_at type="dateTime">2025-12-01T09:00:00+00:00</created_at>
              <book>
                <id type="integer">1</id>
                <title>Finished Book</title>
                <author><name>Someone</name></author>
              </book>
            </review>
          </read_status>
        </object>
      </update>
      <update type="review">
        <object>
          <book><title>Reviewed Book</title></book>
        </object>
      </update>
    </updates>
  </user>
</GoodreadsResponse>
"""

GITHUB_EVENTS = [
    {
        "id": "3",
        "type": "PushEvent",
        "repo": {"id": 1, "name": "urdh/site"},
        "created_at": "2024-05-01T12:00:00Z",
        "payload": {
            "head": "c2",
            "commits": [
                {"sha": "c2", "message": "Add photo feed\n\nLonger description"},
                {"sha": "c1", "message": "Fix bug"},
            ],
        },
    },
    {
        "id": "2",
        "type": "WatchEvent",
        "repo": {"id": 2, "name": "someone/else"},
        "created_at": "2024-04-30T12:00:00Z",
        "payload": {"action": "started"},
    },
    {
        "id": "1",
        "type": "PushEvent",
        "repo": {"id": 3, "name": "urdh/dotfiles"},
        "created_at": "2024-04-29T08:30:00Z",
        "payload": {"head": "d1", "before": "d0"},
    },
]

GITHUB_HEAD_COMMIT = {
    "sha": "d1",
    "html_url": "https://github.com/urdh/dotfiles/commit/d1",
    "commit": {"message": "Update vimrc\n\nSigned-off-by: urdh"},
}

PHOTOS_PAYLOAD = [
    {
        "url": "https://photography.sigurdhsson.org/albums/iceland/index.html",
        "title": "Iceland",
        "date": "2023-08-01T10:00:00Z",
        "camera": "Fujifilm X-T3",
    },
    {
        "url": "https://photography.sigurdhsson.org/albums/oslo/",
        "title": "Oslo",
        "date": "2023-05-01T10:00:00Z",
    },
]


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


Handler = Callable[[httpx.Request], httpx.Response]


class Upstream:
    """Routes outbound requests by URL path and records them."""

    def __init__(self) -> None:
        self.routes: dict[str, Handler] = {}
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return handler(request)

    def json(self, path: str, payload, status_code: int = 200) -> None:
        self.routes[path] = lambda request: httpx.Response(status_code, json=copy.deepcopy(payload))

    def text(self, path: str, body: str, status_code: int = 200) -> None:
        self.routes[path] = lambda request: httpx.Response(status_code, text=body)

    def calls(self, path: str) -> int:
        return sum(1 for request in self.requests if request.url.path == path)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream() -> Upstream:
    stub = Upstream()
    stub.json("/2.0/", LASTFM_PAYLOAD)
    stub.text("/user/show/27549920.xml", GOODREADS_XML)
    stub.json("/users/urdh/events/public", GITHUB_EVENTS)
    stub.json("/repos/urdh/dotfiles/commits/d1", GITHUB_HEAD_COMMIT)
    stub.json("/photos.json", PHOTOS_PAYLOAD)
    return stub


@pytest_asyncio.fixture
async def http_client(upstream: Upstream):
    async with httpx.AsyncClient(transport=upstream.transport) as client:
        yield client


@pytest.fixture
def make_service(http_client: httpx.AsyncClient, clock: FakeClock) -> Callable[..., FeedService]:
    def _make(lastfm_key: str | None = "test-key", max_head_lookups: int = 5) -> FeedService:
        adapters = {
            FeedKind.TRACKS: LastfmAdapter(
                http_client, api_key=lastfm_key, user="TinyGuy", limit=5, base_url=LASTFM_URL
            ),
            FeedKind.CURRENTLY_READING: GoodreadsAdapter(
                http_client, api_key="test-key", user="27549920", base_url=GOODREADS_URL
            ),
            FeedKind.COMMITS: GithubAdapter(
                http_client, user="urdh", base_url=GITHUB_URL, max_head_lookups=max_head_lookups
            ),
            FeedKind.PHOTOS: PhotosAdapter(http_client, url=PHOTOS_URL),
        }
        return FeedService(adapters, ResponseCache(TTLS, clock=clock))

    return _make


@pytest.fixture
def feed_service(make_service) -> FeedService:
    return make_service()


@pytest.fixture
def make_client():
    def _make(service: FeedService, **kwargs) -> AsyncClient:
        kwargs.setdefault("static_dir", "")
        app = create_app(service, **kwargs)
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    return _make


@pytest_asyncio.fixture
async def client(feed_service: FeedService, make_client):
    async with make_client(feed_service) as ac:
        yield ac
