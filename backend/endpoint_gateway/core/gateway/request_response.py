"""
Gateway request/response: read_json_body, parse_dispatch_body, check_mode, json_ok, json_error.

- read_json_body: JSON body with a hard byte cap (413 over the cap, 400 when malformed).
- parse_dispatch_body: {"message": str, "callbackUrl"?: str} -> DispatchBody.
- check_mode: callbackUrl presence must match the endpoint mode exactly.
- json_ok / json_error: the {"ok": ..., ...} envelope every endpoint response uses.
"""

import json
from dataclasses import dataclass
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

from endpoint_gateway.core.gateway.errors import (
    EndpointRequestError,
    InvalidRequestBodyError,
    PayloadTooLargeError,
)
from endpoint_gateway.core.gateway.resolver import EndpointDefinition

MAX_BODY_BYTES = 1024 * 1024


@dataclass(frozen=True)
class DispatchBody:
    message: str
    callback_url: str | None = None


async def read_json_body(request: Request, max_bytes: int = MAX_BODY_BYTES) -> Any:
    """
    Read and decode the request body as JSON.

    Empty body -> {}. Stops reading as soon as max_bytes is exceeded.
    Raises PayloadTooLargeError or InvalidRequestBodyError.
    """
    declared = request.headers.get("content-length")
    if declared is not None:
        try:
            if int(declared) > max_bytes:
                raise PayloadTooLargeError()
        except ValueError:
            pass

    chunks: list[bytes] = []
    total = 0
    async for chunk in request.stream():
        total += len(chunk)
        if total > max_bytes:
            raise PayloadTooLargeError()
        chunks.append(chunk)

    raw = b"".join(chunks)
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as e:
        # ValueError covers JSONDecodeError and UnicodeDecodeError;
        # RecursionError is raised for pathologically nested input
        raise InvalidRequestBodyError(f"invalid JSON: {e}") from e


def parse_dispatch_body(payload: Any) -> DispatchBody:
    """
    Extract message and callbackUrl. Non-object payloads count as {}.
    Raises InvalidRequestBodyError("message is required") for a missing,
    blank or non-string message. A blank or non-string callbackUrl is absent.
    """
    raw: dict[str, Any] = payload if isinstance(payload, dict) else {}
    message = raw.get("message")
    message = message.strip() if isinstance(message, str) else ""
    if not message:
        raise InvalidRequestBodyError("message is required")
    callback_url = raw.get("callbackUrl")
    callback_url = callback_url.strip() if isinstance(callback_url, str) else ""
    return DispatchBody(message=message, callback_url=callback_url or None)


def check_mode(entry: EndpointDefinition, callback_url: str | None) -> None:
    """async requires a callbackUrl; sync rejects one."""
    if entry.mode == "async" and not callback_url:
        raise InvalidRequestBodyError(
            f'Endpoint "{entry.id}" is async — callbackUrl is required'
        )
    if entry.mode == "sync" and callback_url:
        raise InvalidRequestBodyError(
            f'Endpoint "{entry.id}" is sync — callbackUrl is not supported'
        )


def json_ok(status_code: int = 200, **fields: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": True, **fields})


def json_error(
    status_code: int, error: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": error},
        headers=headers,
    )


def error_response(exc: EndpointRequestError) -> JSONResponse:
    return json_error(exc.status_code, exc.detail, headers=exc.headers or None)
