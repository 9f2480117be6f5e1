"""
Gateway resolver: raw endpoints config -> immutable routable snapshot.

URL pattern: {base_path}/{endpoint_id}. The snapshot is rebuilt wholesale on
every config reload; nothing in it is mutated after construction.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from endpoint_gateway.schemas_endpoints import EndpointMode, EndpointsConfig

DEFAULT_BASE_PATH = "/endpoints"
DEFAULT_RATE_LIMIT_MAX_REQUESTS = 60
DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 60
UNNAMED_TOKEN_LABEL = "unnamed"


@dataclass(frozen=True)
class EndpointDefinition:
    id: str
    instructions: str | None = None
    mode: EndpointMode = "sync"
    model: str | None = None
    thinking: str | None = None
    timeout_seconds: int | None = None
    # token value -> label; empty means the endpoint accepts unauthenticated requests
    tokens: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def requires_auth(self) -> bool:
        return len(self.tokens) > 0


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int
    window_seconds: int


@dataclass(frozen=True)
class EndpointsConfigSnapshot:
    base_path: str
    rate_limit: RateLimitConfig | None
    entries: Mapping[str, EndpointDefinition]


def normalize_base_path(raw: str | None) -> str:
    """
    "/endpoints" when unset or blank; always a leading "/", never a trailing one.
    E.g. "hooks/" -> "/hooks"; "/" -> "".
    """
    base_path = (raw or "").strip() or DEFAULT_BASE_PATH
    if not base_path.startswith("/"):
        base_path = f"/{base_path}"
    return base_path.rstrip("/")


def _resolve_rate_limit(raw: EndpointsConfig) -> RateLimitConfig | None:
    rl = raw.rate_limit
    # Present but with neither field set means disabled, not 60/60.
    if rl is None or not (rl.max_requests or rl.window_seconds):
        return None
    return RateLimitConfig(
        max_requests=rl.max_requests or DEFAULT_RATE_LIMIT_MAX_REQUESTS,
        window_seconds=rl.window_seconds or DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
    )


def resolve_endpoints_config(
    raw: EndpointsConfig | None,
) -> EndpointsConfigSnapshot | None:
    """
    Build the routable snapshot, or None when the feature is off.

    - None unless ``enabled`` is exactly True.
    - Entries with a blank id are skipped; a later duplicate id replaces an earlier one.
    - Token values are trimmed, blanks skipped; label defaults to "unnamed".
      Duplicate values keep the last label.
    - None when no entry survives.
    """
    if raw is None or raw.enabled is not True:
        return None

    entries: dict[str, EndpointDefinition] = {}
    for entry in raw.entries or []:
        endpoint_id = (entry.id or "").strip()
        if not endpoint_id:
            continue
        tokens: dict[str, str] = {}
        for t in entry.tokens or []:
            value = (t.value or "").strip()
            if value:
                tokens[value] = (t.name or "").strip() or UNNAMED_TOKEN_LABEL
        entries[endpoint_id] = EndpointDefinition(
            id=endpoint_id,
            instructions=entry.instructions,
            mode=entry.mode or "sync",
            model=entry.model,
            thinking=entry.thinking,
            timeout_seconds=entry.timeout_seconds,
            tokens=MappingProxyType(tokens),
        )
    if not entries:
        return None

    return EndpointsConfigSnapshot(
        base_path=normalize_base_path(raw.base_path),
        rate_limit=_resolve_rate_limit(raw),
        entries=MappingProxyType(entries),
    )


def match_base_path(path: str, base_path: str) -> str | None:
    """
    Return the endpoint id segment for a path under base_path, or None when the
    path is outside it. The id is the remainder with leading slashes stripped
    and may be empty ("/endpoints" or "/endpoints/").
    """
    if path != base_path and not path.startswith(f"{base_path}/"):
        return None
    return path[len(base_path):].lstrip("/")
