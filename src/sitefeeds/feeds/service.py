from __future__ import annotations

from typing import Mapping

import httpx

from sitefeeds import config
from sitefeeds.feeds.cache import ResponseCache
from sitefeeds.feeds.providers import (
    GithubAdapter,
    GoodreadsAdapter,
    LastfmAdapter,
    PhotosAdapter,
    ProviderAdapter,
)
from sitefeeds.feeds.types import FeedKind, FetchResult


class FeedService:
    """Owns the adapters and the response cache for the four feeds."""

    def __init__(
        self,
        adapters: Mapping[FeedKind, ProviderAdapter],
        cache: ResponseCache,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        missing = set(FeedKind) - set(adapters)
        if missing:
            raise ValueError(f"no adapter for feeds: {sorted(kind.value for kind in missing)}")
        self.adapters = dict(adapters)
        self.cache = cache
        self._client = client

    def ttl(self, kind: FeedKind) -> float:
        return self.cache.ttl(kind)

    async def get(self, kind: FeedKind) -> FetchResult:
        return await self.cache.get_or_fetch(kind, self.adapters[kind].fetch)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()


def default_ttls() -> dict[FeedKind, float]:
    return {
        FeedKind.TRACKS: config.TRACKS_TTL_S,
        FeedKind.CURRENTLY_READING: config.BOOKS_TTL_S,
        FeedKind.COMMITS: config.COMMITS_TTL_S,
        FeedKind.PHOTOS: config.PHOTOS_TTL_S,
    }


def build_feed_service(client: httpx.AsyncClient | None = None) -> FeedService:
    owned_client = None
    if client is None:
        client = owned_client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.UPSTREAM_TIMEOUT_S),
            headers={"User-Agent": config.USER_AGENT},
            follow_redirects=True,
        )

    adapters: dict[FeedKind, ProviderAdapter] = {
        FeedKind.TRACKS: LastfmAdapter(
            client,
            api_key=config.LASTFM_API_KEY,
            user=config.LASTFM_USER,
            limit=config.LASTFM_TRACK_LIMIT,
            base_url=config.LASTFM_API_URL,
        ),
        FeedKind.CURRENTLY_READING: GoodreadsAdapter(
            client,
            api_key=config.GOODREADS_API_KEY,
            user=config.GOODREADS_USER,
            base_url=config.GOODREADS_API_URL,
        ),
        FeedKind.COMMITS: GithubAdapter(
            client,
            user=config.GITHUB_USER,
            base_url=config.GITHUB_API_URL,
            token=config.GITHUB_TOKEN,
            max_head_lookups=config.GITHUB_MAX_HEAD_LOOKUPS,
        ),
        FeedKind.PHOTOS: PhotosAdapter(client, url=config.PHOTOS_URL),
    }
    return FeedService(adapters, ResponseCache(default_ttls()), client=owned_client)
