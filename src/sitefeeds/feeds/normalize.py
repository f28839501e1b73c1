from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, TypeVar

from pydantic import BaseModel, ValidationError

from sitefeeds.errors import MalformedRecordError
from sitefeeds.feeds.schemas import (
    GithubCommitRef,
    GithubEvent,
    GoodreadsUpdate,
    LastfmTrack,
    PhotoRecord,
    as_list,
)
from sitefeeds.feeds.types import Book, Commit, FeedKind, Photo, Track


logger = logging.getLogger("sitefeeds.normalize")

S = TypeVar("S", bound=BaseModel)
T = TypeVar("T")

GOODREADS_BOOK_URL = "https://www.goodreads.com/book/show/{id}"
GITHUB_COMMIT_URL = "https://github.com/{repo}/commit/{sha}"
_INDEX_SUFFIX = re.compile(r"index\.html?$")


def _validate(schema: type[S], raw: Any) -> S:
    try:
        return schema.model_validate(raw)
    except ValidationError as exc:
        raise MalformedRecordError(f"{schema.__name__}: {exc.error_count()} validation error(s)") from exc


def _require(value: T | None, field: str) -> T:
    if value is None or value == "":
        raise MalformedRecordError(f"missing {field}")
    return value


def _dig(payload: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(payload, dict):
            return None
        payload = payload.get(key)
    return payload


def _records(feed: FeedKind, container: Any) -> list:
    if container is None:
        logger.warning("payload_unexpected reason=missing container", extra={"feed": feed.value})
        return []
    if isinstance(container, (str, bytes)):
        logger.warning("payload_unexpected reason=scalar container", extra={"feed": feed.value})
        return []
    return as_list(container)


def _collect(feed: FeedKind, records: Iterable[Any], convert: Callable[[Any], list[T]]) -> list[T]:
    # Malformed records are dropped one at a time; the rest of the batch survives.
    items: list[T] = []
    for index, raw in enumerate(records):
        try:
            items.extend(convert(raw))
        except MalformedRecordError as exc:
            logger.warning("record_dropped index=%s reason=%s", index, exc, extra={"feed": feed.value})
    return items


def first_line(message: str) -> str:
    lines = message.splitlines()
    return lines[0] if lines else ""


def strip_index_suffix(url: str) -> str:
    return _INDEX_SUFFIX.sub("", url)


def normalize_tracks(payload: Any, now: datetime | None = None) -> list[Track]:
    """Map Last.fm ``user.getRecentTracks`` output to tracks.

    The currently playing track carries no ``date``; it is stamped with ``now``.
    """
    now = now or datetime.now(timezone.utc)

    def convert(raw: Any) -> list[Track]:
        track = _validate(LastfmTrack, raw)
        artist = track.artist and (track.artist.text or track.artist.name)
        if track.date is not None and track.date.uts is not None:
            try:
                date = datetime.fromtimestamp(track.date.uts, tz=timezone.utc)
            except (OverflowError, OSError, ValueError) as exc:
                raise MalformedRecordError(f"date.uts out of range: {track.date.uts}") from exc
        else:
            date = now
        return [
            Track(
                artist=_require(artist, "artist"),
                title=_require(track.name, "name"),
                url=_require(track.url, "url"),
                date=date,
            )
        ]

    records = _records(FeedKind.TRACKS, _dig(payload, "recenttracks", "track"))
    return _collect(FeedKind.TRACKS, records, convert)


def normalize_books(payload: Any) -> list[Book]:
    """Keep the "currently-reading" read status updates of a Goodreads user."""

    def convert(raw: Any) -> list[Book]:
        update = _validate(GoodreadsUpdate, raw)
        if update.type != "readstatus":
            return []
        read_status = _require(update.object and update.object.read_status, "object.read_status")
        if read_status.status != "currently-reading":
            return []
        review = _require(read_status.review, "review")
        book = _require(review.book, "review.book")
        authors = book.author_names()
        if not authors:
            raise MalformedRecordError("missing book.author")
        return [
            Book(
                title=_require(book.title, "book.title"),
                authors=authors,
                url=GOODREADS_BOOK_URL.format(id=_require(book.id, "book.id")),
                date=_require(review.created_at, "review.created_at"),
            )
        ]

    records = _records(FeedKind.CURRENTLY_READING, _dig(payload, "updates", "update"))
    return _collect(FeedKind.CURRENTLY_READING, records, convert)


def normalize_commits(payload: Any) -> list[Commit]:
    """Expand public push events into commits, oldest first within each push."""

    def convert(raw: Any) -> list[Commit]:
        event = _validate(GithubEvent, raw)
        if event.type != "PushEvent":
            return []
        repo = _require(event.repo and event.repo.name, "repo.name")
        created_at = _require(event.created_at, "created_at")
        push = _require(event.payload, "payload")

        def convert_commit(raw_commit: Any) -> list[Commit]:
            ref = _validate(GithubCommitRef, raw_commit)
            sha = _require(ref.sha, "commit.sha")
            return [
                Commit(
                    sha=sha,
                    url=GITHUB_COMMIT_URL.format(repo=repo, sha=sha),
                    message=first_line(_require(ref.message, "commit.message")),
                    repo=repo,
                    date=created_at,
                )
            ]

        # upstream lists the commits of a push newest first
        commits = list(reversed(push.commits or []))
        return _collect(FeedKind.COMMITS, commits, convert_commit)

    records = _records(FeedKind.COMMITS, payload if isinstance(payload, list) else None)
    return _collect(FeedKind.COMMITS, records, convert)


def normalize_photos(payload: Any) -> list[Photo]:
    def convert(raw: Any) -> list[Photo]:
        photo = _validate(PhotoRecord, raw)
        return [
            Photo(
                url=strip_index_suffix(_require(photo.url, "url")),
                title=_require(photo.title, "title"),
                date=_require(photo.date, "date"),
                camera=photo.camera or None,
            )
        ]

    records = _records(FeedKind.PHOTOS, payload if isinstance(payload, list) else None)
    return _collect(FeedKind.PHOTOS, records, convert)


NORMALIZERS: dict[FeedKind, Callable[[Any], list]] = {
    FeedKind.TRACKS: normalize_tracks,
    FeedKind.CURRENTLY_READING: normalize_books,
    FeedKind.COMMITS: normalize_commits,
    FeedKind.PHOTOS: normalize_photos,
}
