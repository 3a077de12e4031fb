"""FastAPI resolver for GS1 Digital Link lookups.

Exposes ``/resolver/01/{gtin}/10/{lot}/21/{serial}`` (serial optional)
and ``/health``. Every failure is a JSON body ``{error, message}``;
unexpected exceptions are logged in full here and reported to the client
only as ``UNEXPECTED_ERROR``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dpplink import __version__
from dpplink.config import ResolverSettings, load_settings
from dpplink.core.errors import ResolverError
from dpplink.core.resolution import ResolutionService
from dpplink.core.timefmt import utc_now_iso
from dpplink.server.context import ResolverContext

logger = logging.getLogger(__name__)

router = APIRouter(tags=["resolver"])


def get_resolution_service(request: Request) -> ResolutionService:
    return request.app.state.resolution_service


async def _resolve(service: ResolutionService, gtin: str, lot: str, serial: str | None):
    try:
        view = await service.resolve(gtin, lot, serial)
    except ResolverError:
        raise
    except Exception:
        logger.exception("Unexpected resolver failure for gtin=%s lot=%s serial=%r", gtin, lot, serial)
        return JSONResponse(
            status_code=500,
            content=ResolverError().to_dict(),
        )
    return view.to_response()


@router.get("/resolver/01/{gtin}/10/{lot}/21/{serial}")
async def resolve_with_serial(
    gtin: str,
    lot: str,
    serial: str,
    service: ResolutionService = Depends(get_resolution_service),
):
    """Resolve a serialized item."""
    return await _resolve(service, gtin, lot, serial)


@router.get("/resolver/01/{gtin}/10/{lot}/21")
async def resolve_without_serial(
    gtin: str,
    lot: str,
    service: ResolutionService = Depends(get_resolution_service),
):
    """Resolve a lot-level link (empty serial)."""
    return await _resolve(service, gtin, lot, None)


@router.get("/health")
async def health_check():
    return {"status": "ok", "time": utc_now_iso()}


async def resolver_error_handler(request: Request, exc: ResolverError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.warning("[resolver] %s on %s: %s", exc.error_code, request.url.path, exc.message)
    else:
        logger.info("[resolver] %s on %s", exc.error_code, request.url.path)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


def create_app(
    context: ResolverContext | None = None,
    *,
    settings: ResolverSettings | None = None,
) -> FastAPI:
    """Build the resolver application.

    Parameters
    ----------
    context:
        Pre-built shared resources. The caller keeps ownership and closes
        them. When omitted, resources are built from *settings* at startup
        and closed at shutdown.
    settings:
        Configuration used when *context* is omitted. Defaults to the
        environment.
    """
    if settings is None:
        settings = context.settings if context is not None else load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = context is None
        ctx = context if context is not None else ResolverContext.from_settings(settings)
        app.state.context = ctx
        app.state.resolution_service = ctx.build_service()
        try:
            yield
        finally:
            if owned:
                await ctx.aclose()

    app = FastAPI(
        title="dpplink resolver",
        description="GS1 Digital Link resolver with Dynamic/Locked notarization cross-check",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_exception_handler(ResolverError, resolver_error_handler)

    origins = settings.cors_origin_list
    if origins:
        app.add_middleware(CORSMiddleware, allow_origins=origins, allow_methods=["GET"])

    app.include_router(router)
    return app
