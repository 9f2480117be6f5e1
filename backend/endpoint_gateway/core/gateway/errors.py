"""
Gateway request errors.

Each carries the HTTP status and the message surfaced to the caller as
``{"ok": false, "error": detail}``. Raised by the request pipeline and turned
into a response by the endpoints request handler; never escapes it.
"""


class EndpointRequestError(Exception):
    status_code: int = 400
    default_detail: str = "Bad Request"

    def __init__(
        self,
        detail: str | None = None,
        *,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.detail = detail or self.default_detail
        self.headers = headers or {}
        super().__init__(self.detail)


class InvalidRequestBodyError(EndpointRequestError):
    status_code = 400


class EndpointAuthError(EndpointRequestError):
    """Missing or wrong token. Deliberately carries no detail."""

    status_code = 401
    default_detail = "Unauthorized"


class EndpointNotFoundError(EndpointRequestError):
    status_code = 404
    default_detail = "Not Found"


class PayloadTooLargeError(EndpointRequestError):
    status_code = 413
    default_detail = "payload too large"


class RateLimitExceededError(EndpointRequestError):
    status_code = 429
    default_detail = "Rate limit exceeded"

    def __init__(self, retry_after_seconds: int) -> None:
        super().__init__(headers={"Retry-After": str(retry_after_seconds)})
        self.retry_after_seconds = retry_after_seconds
