"""
Endpoints gateway: POST {base_path}/{endpoint_id}.

Flow: path match -> method -> endpoint lookup -> auth -> rate limit -> body ->
message/callbackUrl -> mode check -> dispatch.

The handler sits in front of the regular routes. Requests outside base_path (or
all requests while the feature is disabled) are not handled here and continue
to the rest of the app.
"""

import logging
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request
from starlette.responses import PlainTextResponse, Response

from endpoint_gateway.core.gateway.auth import (
    authenticate_endpoint,
    extract_endpoint_token,
)
from endpoint_gateway.core.gateway.dispatch import DispatchEngine
from endpoint_gateway.core.gateway.errors import (
    EndpointNotFoundError,
    EndpointRequestError,
    RateLimitExceededError,
)
from endpoint_gateway.core.gateway.ratelimit import SlidingWindowRateLimiter
from endpoint_gateway.core.gateway.request_response import (
    MAX_BODY_BYTES,
    check_mode,
    error_response,
    parse_dispatch_body,
    read_json_body,
)
from endpoint_gateway.core.gateway.resolver import (
    EndpointsConfigSnapshot,
    match_base_path,
)

logger = logging.getLogger(__name__)

ConfigGetter = Callable[[], EndpointsConfigSnapshot | None]


class EndpointsRequestHandler:
    def __init__(
        self,
        *,
        get_config: ConfigGetter,
        rate_limiter: SlidingWindowRateLimiter,
        engine: DispatchEngine,
        max_body_bytes: int = MAX_BODY_BYTES,
    ) -> None:
        self._get_config = get_config
        self._rate_limiter = rate_limiter
        self._engine = engine
        self._max_body_bytes = max_body_bytes

    async def handle(self, request: Request) -> Response | None:
        """Response for requests under base_path; None for everything else."""
        config = self._get_config()
        if config is None:
            return None
        endpoint_id = match_base_path(request.url.path, config.base_path)
        if endpoint_id is None:
            return None

        if request.method != "POST":
            return PlainTextResponse(
                "Method Not Allowed", status_code=405, headers={"Allow": "POST"}
            )

        try:
            return await self._handle_post(request, config, endpoint_id)
        except EndpointRequestError as e:
            return error_response(e)

    async def _handle_post(
        self,
        request: Request,
        config: EndpointsConfigSnapshot,
        endpoint_id: str,
    ) -> Response:
        if not endpoint_id:
            raise EndpointNotFoundError("Endpoint id required in path")
        entry = config.entries.get(endpoint_id)
        if entry is None:
            raise EndpointNotFoundError(f"Unknown endpoint: {endpoint_id}")

        token_label = authenticate_endpoint(entry, extract_endpoint_token(request))

        rl = config.rate_limit
        if rl is not None and not self._rate_limiter.admit(
            entry.id, rl.max_requests, rl.window_seconds
        ):
            raise RateLimitExceededError(rl.window_seconds)

        payload = await read_json_body(request, self._max_body_bytes)
        body = parse_dispatch_body(payload)
        check_mode(entry, body.callback_url)

        return await self._engine.dispatch(
            entry,
            body.message,
            callback_url=body.callback_url,
            token_label=token_label,
        )


def install_endpoints_handler(app: FastAPI, handler: EndpointsRequestHandler) -> None:
    """Run handler ahead of the app's routes; unhandled requests fall through."""

    @app.middleware("http")
    async def endpoints_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await handler.handle(request)
        if response is None:
            return await call_next(request)
        return response
