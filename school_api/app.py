from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from school_api.core.config import Settings, get_settings
from school_api.core.log import configure_logging
from school_api.routers import news as news_router
from school_api.routers import radio as radio_router
from school_api.routers import students as students_router
from school_api.routers import trips as trips_router
from school_api.services.resource_service import build_resource_services

logger = logging.getLogger(__name__)


async def unknown_route_handler(request: Request, exc: StarletteHTTPException):
    # Anything the routers and /public do not serve answers like an unknown route.
    if exc.status_code in (404, 405):
        return PlainTextResponse(f"Unknown route: {request.url.path}", status_code=404)
    return await http_exception_handler(request, exc)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (``--factory``)."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="School Content API")
    app.state.settings = settings
    app.state.resource_services = build_resource_services(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.mount("/public", StaticFiles(directory=settings.public_dir), name="public")

    app.include_router(news_router.router)
    app.include_router(trips_router.router)
    app.include_router(students_router.router)
    app.include_router(radio_router.router)
    app.add_exception_handler(StarletteHTTPException, unknown_route_handler)

    logger.info(
        "API ready (env=%s, data=%s, uploads=%s)",
        settings.app_env,
        settings.data_dir,
        settings.public_dir,
    )
    return app
