from __future__ import annotations

from sitefeeds.feeds.cache import FeedCacheEntry, ResponseCache
from sitefeeds.feeds.normalize import (
    normalize_books,
    normalize_commits,
    normalize_photos,
    normalize_tracks,
)
from sitefeeds.feeds.providers import (
    GithubAdapter,
    GoodreadsAdapter,
    LastfmAdapter,
    PhotosAdapter,
    ProviderAdapter,
)
from sitefeeds.feeds.service import FeedService, build_feed_service, default_ttls
from sitefeeds.feeds.types import (
    Book,
    Commit,
    Err,
    ErrorKind,
    FeedKind,
    FetchResult,
    NormalizedItem,
    Ok,
    Photo,
    Track,
)

__all__ = [
    "Book",
    "Commit",
    "Err",
    "ErrorKind",
    "FeedCacheEntry",
    "FeedKind",
    "FeedService",
    "FetchResult",
    "GithubAdapter",
    "GoodreadsAdapter",
    "LastfmAdapter",
    "NormalizedItem",
    "Ok",
    "Photo",
    "PhotosAdapter",
    "ProviderAdapter",
    "ResponseCache",
    "Track",
    "build_feed_service",
    "default_ttls",
    "normalize_books",
    "normalize_commits",
    "normalize_photos",
    "normalize_tracks",
]
