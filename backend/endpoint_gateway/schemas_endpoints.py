"""
Pydantic schemas for the endpoints config file.

File format (camelCase keys)::

    {
      "endpoints": {
        "enabled": true,
        "basePath": "/endpoints",
        "rateLimit": {"maxRequests": 60, "windowSeconds": 60},
        "entries": [
          {"id": "support", "mode": "sync", "tokens": [{"value": "...", "name": "ci"}]}
        ]
      }
    }

These models only validate shape; turning them into a routable snapshot is
``core.gateway.resolver.resolve_endpoints_config``.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt

EndpointMode = Literal["sync", "async"]


class _ConfigModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class EndpointToken(_ConfigModel):
    """One accepted token for an endpoint; name is reported as the caller label."""

    value: str = Field(..., min_length=1)
    name: str | None = None


class EndpointEntry(_ConfigModel):
    id: str = Field(..., min_length=1)
    instructions: str | None = None
    mode: EndpointMode | None = None
    tokens: list[EndpointToken] | None = None
    model: str | None = None
    thinking: str | None = None
    timeout_seconds: StrictInt | None = Field(default=None, gt=0, alias="timeoutSeconds")


class EndpointRateLimit(_ConfigModel):
    max_requests: StrictInt | None = Field(default=None, gt=0, alias="maxRequests")
    window_seconds: StrictInt | None = Field(default=None, gt=0, alias="windowSeconds")


class EndpointsConfig(_ConfigModel):
    """The ``endpoints`` section."""

    enabled: StrictBool | None = None
    base_path: str | None = Field(default=None, alias="basePath")
    rate_limit: EndpointRateLimit | None = Field(default=None, alias="rateLimit")
    entries: list[EndpointEntry] | None = None


class GatewayConfigFile(BaseModel):
    """Top-level config file. Sections other than ``endpoints`` are ignored."""

    model_config = ConfigDict(extra="ignore")

    endpoints: EndpointsConfig | None = None
