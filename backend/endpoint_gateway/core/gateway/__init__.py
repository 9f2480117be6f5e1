"""
Endpoint gateway core: resolver, auth, ratelimit, request/response, dispatch, callback, runner.
"""

from endpoint_gateway.core.gateway.auth import (
    authenticate_endpoint,
    extract_endpoint_token,
)
from endpoint_gateway.core.gateway.callback import deliver_callback
from endpoint_gateway.core.gateway.config_cache import EndpointsConfigCache
from endpoint_gateway.core.gateway.dispatch import (
    AgentTurnError,
    AgentTurnOk,
    AgentTurnResult,
    DispatchEngine,
    DispatchRequest,
    TaskRunner,
    run_agent_turn,
)
from endpoint_gateway.core.gateway.errors import (
    EndpointAuthError,
    EndpointNotFoundError,
    EndpointRequestError,
    InvalidRequestBodyError,
    PayloadTooLargeError,
    RateLimitExceededError,
)
from endpoint_gateway.core.gateway.ratelimit import SlidingWindowRateLimiter
from endpoint_gateway.core.gateway.request_response import (
    check_mode,
    parse_dispatch_body,
    read_json_body,
)
from endpoint_gateway.core.gateway.resolver import (
    EndpointDefinition,
    EndpointsConfigSnapshot,
    RateLimitConfig,
    match_base_path,
    resolve_endpoints_config,
)

__all__ = [
    "AgentTurnError",
    "AgentTurnOk",
    "AgentTurnResult",
    "DispatchEngine",
    "DispatchRequest",
    "EndpointAuthError",
    "EndpointDefinition",
    "EndpointNotFoundError",
    "EndpointRequestError",
    "EndpointsConfigCache",
    "EndpointsConfigSnapshot",
    "InvalidRequestBodyError",
    "PayloadTooLargeError",
    "RateLimitConfig",
    "RateLimitExceededError",
    "SlidingWindowRateLimiter",
    "TaskRunner",
    "authenticate_endpoint",
    "check_mode",
    "deliver_callback",
    "extract_endpoint_token",
    "match_base_path",
    "parse_dispatch_body",
    "read_json_body",
    "resolve_endpoints_config",
    "run_agent_turn",
]
