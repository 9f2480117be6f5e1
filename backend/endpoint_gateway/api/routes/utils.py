from fastapi import APIRouter
from fastapi.responses import JSONResponse

from endpoint_gateway.api.deps import ConfigCacheDep
from endpoint_gateway.core.health import liveness_check, readiness_check

router = APIRouter(prefix="/utils", tags=["utils"])


@router.get("/liveness/", response_model=None)
async def liveness() -> bool | JSONResponse:
    """
    Liveness probe: is the process alive and responsive?

    Lightweight: no I/O.  If this fails the container should be
    restarted by the orchestrator.
    """
    ok, failures = liveness_check()
    if not ok:
        return JSONResponse(
            status_code=503,
            content={"ok": False, "error": "Process unhealthy", "data": failures},
        )
    return True


@router.get("/health-check/", response_model=None)
async def health_check(config_cache: ConfigCacheDep) -> bool | JSONResponse:
    """
    Readiness probe: can the service handle traffic?

    Checks: the endpoints config file (when one is configured) loads and validates.
    Returns 200 with true when ready; 503 otherwise.
    """
    ok, failures = readiness_check(config_cache)
    if not ok:
        return JSONResponse(
            status_code=503,
            content={"ok": False, "error": "Service Unavailable", "data": failures},
        )
    return True
