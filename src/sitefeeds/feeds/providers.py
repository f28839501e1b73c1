from __future__ import annotations

import abc
import logging
import time
import xml.etree.ElementTree as ET
from typing import Any

import httpx
from pydantic import ValidationError

from sitefeeds.errors import NotConfiguredError, UpstreamError
from sitefeeds.feeds.normalize import NORMALIZERS
from sitefeeds.feeds.schemas import GithubCommitDetail
from sitefeeds.feeds.types import Err, ErrorKind, FeedKind, FetchResult, Ok


logger = logging.getLogger("sitefeeds.providers")


class ProviderAdapter(abc.ABC):
    """Fetches one feed from its provider and normalizes it.

    Subclasses implement ``fetch_payload`` and raise ``UpstreamError`` on
    failure; ``fetch`` turns that into an ``Err`` result.
    """

    kind: FeedKind
    name: str

    def __init__(self, client: httpx.AsyncClient, *, timeout_s: float | None = None) -> None:
        self._client = client
        self._timeout = timeout_s

    @abc.abstractmethod
    async def fetch_payload(self) -> Any:
        """Return the provider's decoded payload, raising ``UpstreamError`` on failure."""

    def normalize(self, payload: Any) -> list:
        return NORMALIZERS[self.kind](payload)

    async def fetch(self) -> FetchResult:
        try:
            payload = await self.fetch_payload()
            items = tuple(self.normalize(payload))
        except NotConfiguredError as exc:
            logger.warning("provider_not_configured reason=%s", exc.message, extra={"provider": self.name})
            return Err(ErrorKind.NOT_CONFIGURED, exc.message)
        except UpstreamError as exc:
            logger.warning(
                "upstream_error reason=%s",
                exc.message,
                extra={"provider": self.name, "upstream_status": exc.status_code},
            )
            return Err(ErrorKind.UPSTREAM, exc.message, exc.status_code)
        except Exception:
            logger.exception("upstream_unexpected_error", extra={"provider": self.name})
            return Err(ErrorKind.UPSTREAM, f"Could not query {self.name}")
        return Ok(items)

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        start = time.perf_counter()
        kwargs: dict[str, Any] = {"params": params, "headers": headers}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout
        try:
            response = await self._client.get(url, **kwargs)
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"Could not query {self.name}: request timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Could not query {self.name}: {exc}") from exc

        logger.info(
            "upstream_call",
            extra={
                "provider": self.name,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                "upstream_status": response.status_code,
            },
        )
        if response.is_error:
            raise UpstreamError(_error_message(self.name, response), status_code=response.status_code)
        return response

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"{self.name} returned invalid JSON", status_code=response.status_code) from exc


def _error_message(provider: str, response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"]:
        return body["message"]
    return f"{provider} responded with {response.status_code} {response.reason_phrase}".strip()


class LastfmAdapter(ProviderAdapter):
    kind = FeedKind.TRACKS
    name = "last.fm"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str | None,
        user: str,
        limit: int,
        base_url: str,
        timeout_s: float | None = None,
    ) -> None:
        super().__init__(client, timeout_s=timeout_s)
        self.api_key = api_key
        self.user = user
        self.limit = limit
        self.base_url = base_url

    async def fetch_payload(self) -> Any:
        if not self.api_key:
            raise NotConfiguredError("LASTFM_API_KEY is not set")
        response = await self._get(
            self.base_url,
            params={
                "method": "user.getrecenttracks",
                "user": self.user,
                "api_key": self.api_key,
                "format": "json",
                "limit": self.limit,
            },
        )
        payload = self._json(response)
        # Last.fm reports API errors in a 200 body
        if isinstance(payload, dict) and "error" in payload:
            message = payload.get("message") or f"last.fm error {payload['error']}"
            raise UpstreamError(str(message), status_code=response.status_code)
        return payload


def element_to_value(element: ET.Element) -> Any:
    """Convert an XML element into plain dicts, lists and strings.

    A child tag that occurs once becomes a value, one that repeats becomes a
    list. Attributes are merged in unless a child element has the same name.
    """
    children = list(element)
    if not children:
        if element.get("nil") == "true":
            return None
        return (element.text or "").strip()

    value: dict[str, Any] = {}
    repeated: set[str] = set()
    for child in children:
        item = element_to_value(child)
        if child.tag not in value:
            value[child.tag] = item
        elif child.tag in repeated:
            value[child.tag].append(item)
        else:
            value[child.tag] = [value[child.tag], item]
            repeated.add(child.tag)
    for name, attr in element.attrib.items():
        value.setdefault(name, attr)
    return value


class GoodreadsAdapter(ProviderAdapter):
    kind = FeedKind.CURRENTLY_READING
    name = "goodreads"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str | None,
        user: str,
        base_url: str,
        timeout_s: float | None = None,
    ) -> None:
        super().__init__(client, timeout_s=timeout_s)
        self.api_key = api_key
        self.user = user
        self.base_url = base_url.rstrip("/")

    async def fetch_payload(self) -> Any:
        if not self.api_key:
            raise NotConfiguredError("GOODREADS_API_KEY is not set")
        response = await self._get(
            f"{self.base_url}/user/show/{self.user}.xml",
            params={"key": self.api_key},
        )
        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as exc:
            raise UpstreamError(f"Could not parse XML ({exc})", status_code=response.status_code) from exc

        updates = root.find("./user/updates")
        if updates is None:
            return {}
        return {"updates": element_to_value(updates)}


def _repo_name(event: dict[str, Any]) -> str | None:
    repo = event.get("repo")
    name = repo.get("name") if isinstance(repo, dict) else None
    if not isinstance(name, str) or name.count("/") != 1:
        return None
    return name


def _needs_head_lookup(event: Any) -> bool:
    # Public push events no longer inline their commits, only the head sha.
    if not isinstance(event, dict) or event.get("type") != "PushEvent":
        return False
    payload = event.get("payload")
    return isinstance(payload, dict) and not payload.get("commits") and bool(payload.get("head"))


class GithubAdapter(ProviderAdapter):
    kind = FeedKind.COMMITS
    name = "github"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        user: str,
        base_url: str,
        token: str | None = None,
        max_head_lookups: int = 5,
        timeout_s: float | None = None,
    ) -> None:
        super().__init__(client, timeout_s=timeout_s)
        self.user = user
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.max_head_lookups = max_head_lookups

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def fetch_payload(self) -> Any:
        response = await self._get(f"{self.base_url}/users/{self.user}/events/public", headers=self._headers())
        events = self._json(response)
        if not isinstance(events, list):
            return events

        resolved: list[Any] = []
        lookups = 0
        for index, event in enumerate(events):
            if not _needs_head_lookup(event):
                resolved.append(event)
                continue
            repo_name = _repo_name(event)
            if repo_name is None:
                logger.warning(
                    "record_dropped index=%s reason=%s",
                    index,
                    f"Could not parse repository name {event.get('repo')!r}",
                    extra={"feed": self.kind.value},
                )
                continue
            if lookups >= self.max_head_lookups:
                continue
            lookups += 1
            payload = event["payload"]
            commit = await self._head_commit(repo_name, payload["head"])
            resolved.append(event | {"payload": payload | {"commits": [commit]}})
        return resolved

    async def _head_commit(self, repo_name: str, sha: str) -> dict[str, Any]:
        response = await self._get(f"{self.base_url}/repos/{repo_name}/commits/{sha}", headers=self._headers())
        try:
            detail = GithubCommitDetail.model_validate(self._json(response))
        except ValidationError:
            detail = GithubCommitDetail()
        return {
            "sha": detail.sha or sha,
            "message": detail.commit.message if detail.commit else None,
        }


class PhotosAdapter(ProviderAdapter):
    kind = FeedKind.PHOTOS
    name = "photos"

    def __init__(self, client: httpx.AsyncClient, *, url: str, timeout_s: float | None = None) -> None:
        super().__init__(client, timeout_s=timeout_s)
        self.url = url

    async def fetch_payload(self) -> Any:
        response = await self._get(self.url)
        return self._json(response)
