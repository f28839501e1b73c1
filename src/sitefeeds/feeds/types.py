from __future__ import annotations

import enum
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Union


class FeedKind(str, enum.Enum):
    TRACKS = "tracks"
    CURRENTLY_READING = "currently-reading"
    COMMITS = "commits"
    PHOTOS = "photos"

    @property
    def path(self) -> str:
        return _FEED_PATHS[self]


_FEED_PATHS = {
    FeedKind.TRACKS: "/recent-tracks.json",
    FeedKind.CURRENTLY_READING: "/currently-reading.json",
    FeedKind.COMMITS: "/recent-commits.json",
    FeedKind.PHOTOS: "/recent-photos.json",
}


class ErrorKind(str, enum.Enum):
    UPSTREAM = "upstream"
    NOT_CONFIGURED = "not_configured"


def isoformat(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Track:
    artist: str
    title: str
    url: str
    date: datetime

    def to_dict(self) -> dict:
        return asdict(self) | {"date": isoformat(self.date)}


@dataclass(frozen=True)
class Book:
    title: str
    authors: tuple[str, ...]
    url: str
    date: datetime

    def to_dict(self) -> dict:
        return asdict(self) | {"authors": list(self.authors), "date": isoformat(self.date)}


@dataclass(frozen=True)
class Commit:
    sha: str
    url: str
    message: str
    repo: str
    date: datetime

    def to_dict(self) -> dict:
        return asdict(self) | {"date": isoformat(self.date)}


@dataclass(frozen=True)
class Photo:
    url: str
    title: str
    date: datetime
    camera: str | None = None

    def to_dict(self) -> dict:
        payload = asdict(self) | {"date": isoformat(self.date)}
        if self.camera is None:
            payload.pop("camera")
        return payload


NormalizedItem = Union[Track, Book, Commit, Photo]


@dataclass(frozen=True)
class Ok:
    items: tuple[NormalizedItem, ...]

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return False


FetchResult = Union[Ok, Err]
