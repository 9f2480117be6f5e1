import logging

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.middleware.cors import CORSMiddleware

from endpoint_gateway.api.main import api_router
from endpoint_gateway.api.routes.gateway import (
    ConfigGetter,
    EndpointsRequestHandler,
    install_endpoints_handler,
)
from endpoint_gateway.core.config import settings
from endpoint_gateway.core.gateway.callback import deliver_callback
from endpoint_gateway.core.gateway.config_cache import EndpointsConfigCache
from endpoint_gateway.core.gateway.dispatch import (
    CallbackDeliverer,
    DispatchEngine,
    TaskRunner,
)
from endpoint_gateway.core.gateway.ratelimit import SlidingWindowRateLimiter
from endpoint_gateway.core.gateway.runner import build_default_runner

_logger = logging.getLogger(__name__)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}"


if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with a human-readable detail string instead of raw Pydantic errors."""
    messages = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err.get("loc", []) if part != "body")
        msg = err.get("msg", "Invalid value")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return JSONResponse(status_code=422, content={"ok": False, "error": "; ".join(messages)})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions: log and return 500 with safe message."""
    _logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    detail = "Internal server error"
    if settings.ENVIRONMENT == "local":
        detail = f"Internal server error: {exc}"
    return JSONResponse(status_code=500, content={"ok": False, "error": detail})


def create_app(
    *,
    config_cache: EndpointsConfigCache | None = None,
    get_config: ConfigGetter | None = None,
    runner: TaskRunner | None = None,
    rate_limiter: SlidingWindowRateLimiter | None = None,
    deliver: CallbackDeliverer = deliver_callback,
) -> FastAPI:
    """
    Build the app. Every collaborator can be injected; defaults come from settings.

    get_config overrides the file-backed config cache as the snapshot source.
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        generate_unique_id_function=custom_generate_unique_id,
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    cache = config_cache or EndpointsConfigCache(settings.ENDPOINTS_CONFIG_FILE)
    limiter = rate_limiter or SlidingWindowRateLimiter()
    engine = DispatchEngine(runner or build_default_runner(), deliver=deliver)
    app.state.config_cache = cache
    app.state.rate_limiter = limiter

    handler = EndpointsRequestHandler(
        get_config=get_config or cache.get,
        rate_limiter=limiter,
        engine=engine,
        max_body_bytes=settings.ENDPOINTS_MAX_BODY_BYTES,
    )
    install_endpoints_handler(app, handler)

    # Set all CORS enabled origins
    if settings.all_cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.all_cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
