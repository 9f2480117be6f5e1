from typing import Annotated

from fastapi import Depends, Request

from endpoint_gateway.core.gateway.config_cache import EndpointsConfigCache


def get_config_cache(request: Request) -> EndpointsConfigCache:
    return request.app.state.config_cache


ConfigCacheDep = Annotated[EndpointsConfigCache, Depends(get_config_cache)]
