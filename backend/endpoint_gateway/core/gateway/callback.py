"""
Callback delivery for async endpoints.

One POST per run, no retries. Any failure (transport error, timeout, non-2xx)
is logged and dropped: the caller already got its 202.
"""

import logging
from typing import Any

import httpx

from endpoint_gateway.core.config import settings

logger = logging.getLogger(__name__)


async def deliver_callback(
    url: str,
    payload: dict[str, Any],
    *,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """POST payload as JSON to url. Never raises."""
    body = {k: v for k, v in payload.items() if v is not None}
    effective_timeout = timeout if timeout is not None else settings.CALLBACK_TIMEOUT_SECONDS
    try:
        async with httpx.AsyncClient(
            timeout=effective_timeout, transport=transport
        ) as client:
            resp = await client.post(
                url,
                json=body,
                headers={"Content-Type": "application/json"},
            )
        if not resp.is_success:
            logger.warning(
                "callbackUrl POST to %s returned %s",
                url,
                resp.status_code,
                extra={"run_id": body.get("runId")},
            )
    except Exception as e:
        logger.warning(
            "callbackUrl POST to %s failed: %s",
            url,
            e,
            extra={"run_id": body.get("runId")},
        )
