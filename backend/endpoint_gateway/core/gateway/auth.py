"""
Gateway auth: extract_endpoint_token, authenticate_endpoint.

Each endpoint carries its own token set (value -> label). An empty set means
the endpoint is open. Matching is exact string equality; the matched label
identifies the caller to the task runner.
"""

from starlette.requests import Request

from endpoint_gateway.core.gateway.errors import EndpointAuthError
from endpoint_gateway.core.gateway.resolver import EndpointDefinition

TOKEN_HEADER = "X-Endpoint-Token"
TOKEN_QUERY_PARAM = "token"


def extract_endpoint_token(request: Request) -> str | None:
    """
    Token presented by the caller, first match wins:
    - Authorization: Bearer <token>
    - X-Endpoint-Token: <token>
    - ?token=<token>

    Returns None when nothing (or only whitespace) was presented.
    """
    auth = (request.headers.get("Authorization") or "").strip()
    if auth.lower().startswith("bearer "):
        token = auth[7:].strip()
        if token:
            return token

    token = (request.headers.get(TOKEN_HEADER) or "").strip()
    if token:
        return token

    token = (request.query_params.get(TOKEN_QUERY_PARAM) or "").strip()
    return token or None


def authenticate_endpoint(entry: EndpointDefinition, token: str | None) -> str | None:
    """
    Return the label of the matching token, or None for an open endpoint.

    Raises EndpointAuthError when the endpoint has tokens and the presented one
    is missing or not among them.
    """
    if not entry.tokens:
        return None
    if not token:
        raise EndpointAuthError()
    label = entry.tokens.get(token)
    if label is None:
        raise EndpointAuthError()
    return label
