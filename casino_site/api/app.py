"""FastAPI application serving the casino site sitemaps and the Sanity webhook.

Uses lifespan context manager and pure ASGI middleware (no BaseHTTPMiddleware).
Sitemaps are rendered from Sanity content on a cache miss and kept until
the revalidation webhook drops them.
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from casino_site.cms.sanity_client import SanityClient
from casino_site.cms.webhook import SECRET_HEADER, SitemapRevalidator
from casino_site.config import get_settings
from casino_site.sitemap import (
    IMAGE_SITEMAP_PATH,
    SITEMAP_PATH,
    SitemapCache,
    build_image_sitemap,
    build_sitemap,
)

from .errors import ErrorCode, error_response
from .middleware import (
    ErrorHandlingMiddleware,
    RequestBodyLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from .models import HealthResponse, RevalidationResponse, WebhookErrorResponse

# Note: settings are accessed via get_settings() at call sites rather than
# frozen at module level so test monkeypatching works.
logger = logging.getLogger(__name__)

SITEMAP_CACHE_CONTROL = "public, max-age=86400, s-maxage=86400"
SITEMAP_CACHE_STATUS_HEADER = "X-Sitemap-Cache"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the Sanity client, sitemap cache and webhook handler."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app.state.sanity = SanityClient(
        settings.SANITY_PROJECT_ID,
        settings.SANITY_DATASET,
        api_version=settings.SANITY_API_VERSION,
        token=settings.SANITY_READ_TOKEN.get_secret_value(),
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    app.state.sitemap_cache = SitemapCache(ttl_seconds=settings.SITEMAP_CACHE_TTL_SECONDS)
    app.state.sitemap_lock = asyncio.Lock()
    app.state.revalidator = SitemapRevalidator(
        secret=settings.SANITY_WEBHOOK_SECRET.get_secret_value(),
        cache=app.state.sitemap_cache,
        paths=settings.REVALIDATE_PATHS,
    )
    if not settings.SANITY_WEBHOOK_SECRET.get_secret_value():
        logger.warning("SANITY_WEBHOOK_SECRET not set; /api/revalidate-sitemap will return 500")

    logger.info(
        "Casino site ready: project=%s dataset=%s",
        settings.SANITY_PROJECT_ID,
        settings.SANITY_DATASET,
    )
    yield
    await app.state.sanity.close()
    logger.info("Application shutdown complete.")


async def _render_sitemap(
    request: Request,
    path: str,
    builder: Callable[[dict[str, list[dict[str, Any]]], str], str],
) -> Response:
    """Serve a sitemap from cache, rendering it from Sanity on a miss.

    The lock stops concurrent misses from each querying Sanity. A render
    overtaken by a webhook is still returned to its caller, but marked
    ``no-store`` and left out of the cache so the next request rebuilds.
    """
    state = request.app.state
    cache: SitemapCache = state.sitemap_cache
    cache_status = "HIT"
    cache_control = SITEMAP_CACHE_CONTROL

    xml = cache.get(path)
    if xml is None:
        async with state.sitemap_lock:
            xml = cache.get(path)
            if xml is None:
                cache_status = "MISS"
                generation = cache.generation(path)
                try:
                    content = await state.sanity.fetch_sitemap_content()
                except httpx.HTTPError:
                    logger.exception("Failed to fetch sitemap content for %s", path)
                    return JSONResponse(
                        status_code=503,
                        content=error_response(
                            ErrorCode.CMS_UNAVAILABLE, "Content service unavailable."
                        ),
                        headers={"Retry-After": "30"},
                    )
                xml = builder(content, get_settings().SITE_URL)
                if not cache.set(path, xml, generation=generation):
                    cache_status = "STALE"
                    cache_control = "no-store"
                logger.info("Rendered %s (%d bytes)", path, len(xml))

    return Response(
        content=xml,
        media_type="application/xml",
        headers={"Cache-Control": cache_control, SITEMAP_CACHE_STATUS_HEADER: cache_status},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title="MetaWin Casino Site",
        version=settings.VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    # Pure ASGI middleware: Starlette executes in REVERSE add order.
    # BodyLimit is outermost so oversized payloads are rejected before any
    # other middleware touches the body. ErrorHandling wraps the rest.
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestBodyLimitMiddleware)

    # ------------------------------------------------------------------
    # POST /api/revalidate-sitemap: Sanity publish webhook
    # ------------------------------------------------------------------
    @app.post(
        "/api/revalidate-sitemap",
        response_model=RevalidationResponse,
        responses={
            401: {"model": WebhookErrorResponse},
            500: {"model": WebhookErrorResponse},
        },
    )
    async def revalidate_sitemap(request: Request):
        revalidator: SitemapRevalidator = request.app.state.revalidator
        raw_body = await request.body()
        status_code, body = revalidator.handle(request.headers.get(SECRET_HEADER), raw_body)
        return JSONResponse(content=body, status_code=status_code)

    # ------------------------------------------------------------------
    # GET /sitemap.xml, /sitemap-images.xml
    # ------------------------------------------------------------------
    @app.get(SITEMAP_PATH, response_class=Response)
    async def sitemap(request: Request):
        return await _render_sitemap(request, SITEMAP_PATH, build_sitemap)

    @app.get(IMAGE_SITEMAP_PATH, response_class=Response)
    async def image_sitemap(request: Request):
        return await _render_sitemap(request, IMAGE_SITEMAP_PATH, build_image_sitemap)

    # ------------------------------------------------------------------
    # GET /health
    # ------------------------------------------------------------------
    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request):
        settings = get_settings()
        cache: SitemapCache | None = getattr(request.app.state, "sitemap_cache", None)
        cached = [p for p in (SITEMAP_PATH, IMAGE_SITEMAP_PATH) if cache is not None and p in cache]
        return HealthResponse(
            status="healthy",
            version=settings.VERSION,
            environment=settings.ENVIRONMENT,
            webhook_configured=bool(settings.SANITY_WEBHOOK_SECRET.get_secret_value()),
            cached_sitemaps=cached,
        )

    return app


app = create_app()

if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        "casino_site.api.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8080")),
        reload=True,
    )
