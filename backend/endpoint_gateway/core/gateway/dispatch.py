"""
Gateway dispatch: hand a validated request to the task runner and deliver the outcome.

- sync:  await the runner, then 200 {"ok": true, "reply"} or 500 {"ok": false, "error"}.
- async: 202 {"ok": true, "runId"} first; the runner is started by a background
  task attached to that response, and its outcome goes to exactly one
  callback POST.

Nothing is retried. The runner boundary (run_agent_turn) folds any exception
into AgentTurnError, so callers only ever see the tagged result.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from starlette.background import BackgroundTask
from starlette.responses import JSONResponse, Response

from endpoint_gateway.core.gateway.callback import deliver_callback
from endpoint_gateway.core.gateway.request_response import json_error, json_ok
from endpoint_gateway.core.gateway.resolver import EndpointDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchRequest:
    endpoint_id: str
    message: str
    instructions: str | None = None
    model: str | None = None
    thinking: str | None = None
    timeout_seconds: int | None = None
    callback_url: str | None = None
    token_label: str | None = None


@dataclass(frozen=True)
class AgentTurnOk:
    run_id: str
    reply: str = ""
    # runner-defined, anything but "error"
    status: str = "ok"


@dataclass(frozen=True)
class AgentTurnError:
    error: str
    run_id: str | None = None


AgentTurnResult = AgentTurnOk | AgentTurnError
TaskRunner = Callable[[DispatchRequest], Awaitable[AgentTurnResult]]
CallbackDeliverer = Callable[[str, dict[str, Any]], Awaitable[None]]


def build_dispatch_request(
    entry: EndpointDefinition,
    message: str,
    callback_url: str | None = None,
    token_label: str | None = None,
) -> DispatchRequest:
    return DispatchRequest(
        endpoint_id=entry.id,
        message=message,
        instructions=entry.instructions,
        model=entry.model,
        thinking=entry.thinking,
        timeout_seconds=entry.timeout_seconds,
        callback_url=callback_url,
        token_label=token_label,
    )


async def run_agent_turn(runner: TaskRunner, request: DispatchRequest) -> AgentTurnResult:
    """Invoke the runner; any exception becomes AgentTurnError(str(exc))."""
    try:
        return await runner(request)
    except Exception as e:
        return AgentTurnError(error=str(e))


class DispatchEngine:
    def __init__(
        self,
        runner: TaskRunner,
        *,
        deliver: CallbackDeliverer = deliver_callback,
        new_run_id: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self._runner = runner
        self._deliver = deliver
        self._new_run_id = new_run_id

    async def dispatch(
        self,
        entry: EndpointDefinition,
        message: str,
        callback_url: str | None = None,
        token_label: str | None = None,
    ) -> Response:
        request = build_dispatch_request(entry, message, callback_url, token_label)
        if entry.mode == "async":
            return self._dispatch_async(request)
        return await self._dispatch_sync(request)

    async def _dispatch_sync(self, request: DispatchRequest) -> Response:
        result = await run_agent_turn(self._runner, request)
        if isinstance(result, AgentTurnError):
            logger.warning(
                "endpoint %s sync error: %s",
                request.endpoint_id,
                result.error,
                extra={"endpoint_id": request.endpoint_id},
            )
            return json_error(500, result.error)
        return json_ok(200, reply=result.reply or "")

    def _dispatch_async(self, request: DispatchRequest) -> Response:
        run_id = self._new_run_id()
        response: JSONResponse = json_ok(202, runId=run_id)
        response.background = BackgroundTask(self.run_in_background, request, run_id)
        return response

    async def run_in_background(self, request: DispatchRequest, run_id: str) -> None:
        """Run the turn after the 202 went out, then make one callback attempt."""
        result = await run_agent_turn(self._runner, request)
        if isinstance(result, AgentTurnError):
            logger.warning(
                "endpoint %s async error: %s",
                request.endpoint_id,
                result.error,
                extra={"endpoint_id": request.endpoint_id, "run_id": run_id},
            )
            payload: dict[str, Any] = {
                "runId": run_id,
                "status": "error",
                "error": result.error,
            }
        else:
            payload = {"runId": run_id, "status": result.status, "reply": result.reply or ""}

        if request.callback_url:
            try:
                await self._deliver(request.callback_url, payload)
            except Exception as e:
                logger.warning(
                    "endpoint %s callback delivery failed: %s",
                    request.endpoint_id,
                    e,
                    extra={"endpoint_id": request.endpoint_id, "run_id": run_id},
                )
