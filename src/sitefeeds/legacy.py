from __future__ import annotations

from typing import Iterable

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse


BLOG_URL = "https://blog.sigurdhsson.org"
PROJECTS_URL = "https://projects.sigurdhsson.org"
LATEXBOK_PDF_URL = "https://github.com/urdh/latexbok/releases/download/edition-2/latexbok-a4.pdf"

GONE_ROUTES: tuple[str, ...] = (
    "/archives/{path:path}",
    "/portfolio/{path:path}",
    "/autobrew",
    "/chslacite",
    "/posts/I-X/{path:path}",
)

# Targets are formatted with the matched path parameters.
REDIRECT_ROUTES: tuple[tuple[str, str], ...] = (
    ("/atom.xml", f"{BLOG_URL}/atom.xml"),
    ("/2012/11/{name}", f"{BLOG_URL}/2012/11/{{name}}"),
    ("/2014/04/{name}", f"{BLOG_URL}/2014/04/{{name}}"),
    ("/2014/09/{name}", f"{BLOG_URL}/2014/09/{{name}}"),
    ("/media/projects/latexbok/latexbok.pdf", LATEXBOK_PDF_URL),
    ("/latexbok/media/latexbok.pdf", LATEXBOK_PDF_URL),
    ("/skrapport/{path:path}", f"{PROJECTS_URL}/skrapport/{{path}}"),
    ("/dotfiles/{path:path}", f"{PROJECTS_URL}/dotfiles/{{path}}"),
    ("/skmath/{path:path}", f"{PROJECTS_URL}/skmath/{{path}}"),
    ("/latexbok/{path:path}", f"{PROJECTS_URL}/latexbok/{{path}}"),
    ("/skdoc/{path:path}", f"{PROJECTS_URL}/skdoc/{{path}}"),
    ("/chscite/{path:path}", f"{PROJECTS_URL}/chscite/{{path}}"),
    ("/streck/{path:path}", f"{PROJECTS_URL}/streck/{{path}}"),
    ("/webboken/v2/{path:path}", "https://webboken.github.io/{path}"),
    ("/latexhax", "/latexhax.html"),
    ("/latexhax/", "/latexhax.html"),
    ("/latexhax/index.html", "/latexhax.html"),
    ("/projects/latexhax.html", "/latexhax.html"),
)


async def _gone(request: Request) -> JSONResponse:
    return JSONResponse({"error": "gone"}, status_code=410)


def _redirect_to(target: str):
    async def redirect(request: Request) -> RedirectResponse:
        return RedirectResponse(target.format(**request.path_params), status_code=308)

    return redirect


def build_legacy_router(
    gone: Iterable[str] = GONE_ROUTES,
    redirects: Iterable[tuple[str, str]] = REDIRECT_ROUTES,
) -> APIRouter:
    router = APIRouter(include_in_schema=False)
    for pattern in gone:
        router.add_api_route(pattern, _gone, methods=["GET", "HEAD"])
    for pattern, target in redirects:
        router.add_api_route(pattern, _redirect_to(target), methods=["GET", "HEAD"])
    return router
