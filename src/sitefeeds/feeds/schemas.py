"""Partial input schemas for the upstream providers.

Only the fields the normalizers read are declared; everything else in a
provider payload is ignored. All fields are optional so that a record can be
validated first and judged complete or malformed afterwards.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_list(value: Any) -> list:
    """Collapse the singular-or-plural fields providers emit into a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


class _Schema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


# Last.fm


class LastfmText(_Schema):
    text: str | None = Field(default=None, alias="#text")
    name: str | None = None


class LastfmDate(_Schema):
    uts: int | None = None


class LastfmTrack(_Schema):
    artist: LastfmText | None = None
    name: str | None = None
    url: str | None = None
    date: LastfmDate | None = None


# Goodreads


class GoodreadsAuthor(_Schema):
    name: str | None = None


class GoodreadsAuthorList(_Schema):
    author: list[GoodreadsAuthor] = Field(default_factory=list)

    @field_validator("author", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> list:
        return as_list(value)


class GoodreadsBook(_Schema):
    id: int | str | None = None
    title: str | None = None
    author: list[GoodreadsAuthor] = Field(default_factory=list)
    authors: GoodreadsAuthorList | None = None

    @field_validator("author", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> list:
        return as_list(value)

    def author_names(self) -> tuple[str, ...]:
        authors = list(self.author)
        if self.authors is not None:
            authors.extend(self.authors.author)
        return tuple(a.name for a in authors if a.name)


class GoodreadsReview(_Schema):
    book: GoodreadsBook | None = None
    created_at: datetime | None = None


class GoodreadsReadStatus(_Schema):
    status: str | None = None
    review: GoodreadsReview | None = None


class GoodreadsObject(_Schema):
    read_status: GoodreadsReadStatus | None = None


class GoodreadsUpdate(_Schema):
    type: str | None = None
    object: GoodreadsObject | None = None


# GitHub


class GithubRepo(_Schema):
    name: str | None = None


class GithubCommitRef(_Schema):
    sha: str | None = None
    message: str | None = None


class GithubPushPayload(_Schema):
    head: str | None = None
    # validated per commit by the normalizer
    commits: list[Any] | None = None


class GithubEvent(_Schema):
    type: str | None = None
    repo: GithubRepo | None = None
    created_at: datetime | None = None
    payload: GithubPushPayload | None = None


class GithubGitCommit(_Schema):
    message: str | None = None


class GithubCommitDetail(_Schema):
    sha: str | None = None
    commit: GithubGitCommit | None = None


# Photos


class PhotoRecord(_Schema):
    url: str | None = None
    title: str | None = None
    date: datetime | None = None
    camera: str | None = None
