from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from sitefeeds import config
from sitefeeds.feeds import Err, FeedKind, FeedService, FetchResult, build_feed_service
from sitefeeds.legacy import build_legacy_router


logger = logging.getLogger("sitefeeds.http")

router = APIRouter()


class FeedJSONResponse(JSONResponse):
    media_type = "application/json; charset=utf-8"


def cache_control(ttl: float) -> str:
    return f"s-maxage={int(ttl)}, stale-while-revalidate"


def render_result(result: FetchResult, ttl: float) -> FeedJSONResponse:
    headers = {"Cache-Control": cache_control(ttl)}
    if isinstance(result, Err):
        return FeedJSONResponse({"error": result.message}, status_code=500, headers=headers)
    return FeedJSONResponse([item.to_dict() for item in result.items], headers=headers)


def get_feed_service(request: Request) -> FeedService:
    return request.app.state.feed_service


async def _feed_response(kind: FeedKind, service: FeedService) -> FeedJSONResponse:
    result = await service.get(kind)
    return render_result(result, service.ttl(kind))


@router.api_route(FeedKind.TRACKS.path, methods=["GET", "HEAD"])
async def recent_tracks(service: FeedService = Depends(get_feed_service)):
    return await _feed_response(FeedKind.TRACKS, service)


@router.api_route(FeedKind.CURRENTLY_READING.path, methods=["GET", "HEAD"])
async def currently_reading(service: FeedService = Depends(get_feed_service)):
    return await _feed_response(FeedKind.CURRENTLY_READING, service)


@router.api_route(FeedKind.COMMITS.path, methods=["GET", "HEAD"])
async def recent_commits(service: FeedService = Depends(get_feed_service)):
    return await _feed_response(FeedKind.COMMITS, service)


@router.api_route(FeedKind.PHOTOS.path, methods=["GET", "HEAD"])
async def recent_photos(service: FeedService = Depends(get_feed_service)):
    return await _feed_response(FeedKind.PHOTOS, service)


@router.api_route("/health", methods=["GET", "HEAD"])
def health():
    return {"status": "ok"}


def create_app(
    service: FeedService | None = None,
    *,
    static_dir: str | None = None,
    legacy_routes: bool | None = None,
) -> FastAPI:
    service = service or build_feed_service()
    static_dir = static_dir if static_dir is not None else config.STATIC_DIR
    legacy_routes = config.LEGACY_ROUTES_ENABLED if legacy_routes is None else legacy_routes

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.feed_service.aclose()

    app = FastAPI(title="sitefeeds", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)
    app.state.feed_service = service

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_failed",
                extra={"method": request.method, "path": request.url.path, "request_id": request_id},
            )
            raise
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "request_id": request_id,
                "client": request.client.host if request.client else None,
                "slow": duration_ms >= config.LOG_SLOW_REQUEST_MS or None,
            },
        )
        return response

    app.include_router(router)
    if legacy_routes:
        app.include_router(build_legacy_router())
    if static_dir:
        if not Path(static_dir).is_dir():
            raise ValueError(f"STATIC_DIR {static_dir!r} is not a directory")
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    return app
