"""
Gateway runner: turn a DispatchRequest into an isolated agent-turn job and run it.

The agent runtime lives elsewhere; AgentTurnBackend is the seam to it
(HttpAgentTurnBackend POSTs the job to AGENT_RUNNER_URL). After every turn the
outcome is reported to the main session as a system event and a heartbeat wake
is requested, mirroring how scheduled jobs report back.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from endpoint_gateway.core.config import settings
from endpoint_gateway.core.gateway.dispatch import (
    AgentTurnError,
    AgentTurnOk,
    AgentTurnResult,
    DispatchRequest,
)

logger = logging.getLogger(__name__)

ENDPOINT_LANE = "endpoint"


class AgentRunnerNotConfigured(RuntimeError):
    """Raised when a turn is requested but no AGENT_RUNNER_URL is set."""


class AgentRunnerError(RuntimeError):
    """The runner answered, but not with a usable outcome."""


@dataclass(frozen=True)
class AgentTurnJob:
    job_id: str
    name: str
    endpoint_id: str
    session_key: str
    message: str
    created_at_ms: int
    lane: str = ENDPOINT_LANE
    model: str | None = None
    thinking: str | None = None
    timeout_seconds: int | None = None
    token_label: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.job_id,
            "name": self.name,
            "sessionKey": self.session_key,
            "lane": self.lane,
            "createdAtMs": self.created_at_ms,
            "payload": {
                "kind": "agentTurn",
                "message": self.message,
                "model": self.model,
                "thinking": self.thinking,
                "timeoutSeconds": self.timeout_seconds,
            },
            "source": {"endpointId": self.endpoint_id, "tokenLabel": self.token_label},
        }


@dataclass(frozen=True)
class AgentTurnOutcome:
    status: str
    output_text: str | None = None
    summary: str | None = None
    error: str | None = None

    @classmethod
    def from_payload(cls, data: Any) -> "AgentTurnOutcome":
        if not isinstance(data, dict) or not isinstance(data.get("status"), str):
            raise AgentRunnerError("agent runner response has no status")

        def _opt_str(key: str) -> str | None:
            v = data.get(key)
            return v if isinstance(v, str) else None

        return cls(
            status=data["status"],
            output_text=_opt_str("outputText"),
            summary=_opt_str("summary"),
            error=_opt_str("error"),
        )


class AgentTurnBackend(Protocol):
    async def run_turn(self, job: AgentTurnJob) -> AgentTurnOutcome: ...


class SystemEventSink(Protocol):
    def enqueue_system_event(self, text: str, *, session_key: str) -> None: ...

    def request_heartbeat(self, *, reason: str) -> None: ...


class LoggingEventSink:
    """Default sink: system events and wake requests go to the log only."""

    def enqueue_system_event(self, text: str, *, session_key: str) -> None:
        logger.info("system event [%s]: %s", session_key, text)

    def request_heartbeat(self, *, reason: str) -> None:
        logger.info("heartbeat requested: %s", reason)


class HttpAgentTurnBackend:
    """
    POST the job as JSON to the agent runner and read back
    {"status", "outputText"?, "summary"?, "error"?}.

    No timeout unless one is configured; the runner enforces the per-endpoint
    timeoutSeconds itself.
    """

    __slots__ = ("_url", "_token", "_timeout", "_transport")

    def __init__(
        self,
        url: str | None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._token = token
        self._timeout = timeout
        self._transport = transport

    async def run_turn(self, job: AgentTurnJob) -> AgentTurnOutcome:
        if not self._url:
            raise AgentRunnerNotConfigured("agent runner is not configured")
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            resp = await client.post(self._url, json=job.to_payload(), headers=headers)
        resp.raise_for_status()
        try:
            data = resp.json()
        except ValueError as e:
            raise AgentRunnerError(f"agent runner returned invalid JSON: {e}") from e
        return AgentTurnOutcome.from_payload(data)


def apply_instructions(message: str, instructions: str | None) -> str:
    """Prepend server-side instructions to the message if configured."""
    if not instructions or not instructions.strip():
        return message
    return f"<instructions>\n{instructions.strip()}\n</instructions>\n\n{message}"


def build_job(request: DispatchRequest) -> AgentTurnJob:
    return AgentTurnJob(
        job_id=str(uuid.uuid4()),
        name=f"Endpoint {request.endpoint_id}",
        endpoint_id=request.endpoint_id,
        session_key=f"endpoint:{request.endpoint_id}:{uuid.uuid4()}",
        message=apply_instructions(request.message, request.instructions),
        created_at_ms=int(time.time() * 1000),
        model=request.model,
        thinking=request.thinking,
        timeout_seconds=request.timeout_seconds,
        token_label=request.token_label,
    )


class AgentTurnRunner:
    """TaskRunner backed by an AgentTurnBackend."""

    def __init__(
        self,
        backend: AgentTurnBackend,
        *,
        events: SystemEventSink | None = None,
        main_session_key: str | None = None,
    ) -> None:
        self._backend = backend
        self._events = events or LoggingEventSink()
        self._main_session_key = main_session_key or settings.MAIN_SESSION_KEY

    async def __call__(self, request: DispatchRequest) -> AgentTurnResult:
        job = build_job(request)
        outcome = await self._backend.run_turn(job)

        summary = (
            (outcome.summary or "").strip()
            or (outcome.error or "").strip()
            or outcome.status
        )
        prefix = (
            f"Endpoint {request.endpoint_id}"
            if outcome.status == "ok"
            else f"Endpoint {request.endpoint_id} ({outcome.status})"
        )
        self._events.enqueue_system_event(
            f"{prefix}: {summary}".strip(), session_key=self._main_session_key
        )
        self._events.request_heartbeat(reason=f"endpoint:{job.job_id}")

        if outcome.status == "error":
            return AgentTurnError(
                error=outcome.error or "endpoint run failed", run_id=job.job_id
            )
        return AgentTurnOk(
            run_id=job.job_id,
            reply=outcome.output_text or outcome.summary or "",
            status=outcome.status,
        )


def build_default_runner() -> AgentTurnRunner:
    url = str(settings.AGENT_RUNNER_URL) if settings.AGENT_RUNNER_URL else None
    return AgentTurnRunner(
        HttpAgentTurnBackend(
            url,
            token=settings.AGENT_RUNNER_TOKEN,
            timeout=settings.AGENT_RUNNER_TIMEOUT_SECONDS,
        )
    )
