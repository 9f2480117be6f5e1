"""
Health-check helpers for liveness and readiness probes.

Liveness: the process is alive and responsive (no I/O).
Readiness: the endpoints config file, when set, loads cleanly.
"""

import logging

from endpoint_gateway.core.gateway.config_cache import EndpointsConfigCache

logger = logging.getLogger(__name__)


def check_endpoints_config(cache: EndpointsConfigCache) -> bool:
    """True when no config file is configured or the last load succeeded."""
    if cache.path is None:
        return True
    cache.get()
    if cache.last_error:
        logger.warning("Endpoints config check failed: %s", cache.last_error)
        return False
    return True


def liveness_check() -> tuple[bool, list[str]]:
    """
    Lightweight liveness probe. Confirms the Python process is responsive.
    Return format matches readiness_check for consistency.
    """
    return (True, [])


def readiness_check(cache: EndpointsConfigCache) -> tuple[bool, list[str]]:
    """Returns (ok, list of failure messages)."""
    failures: list[str] = []

    if not check_endpoints_config(cache):
        failures.append("endpoints_config")

    return (len(failures) == 0, failures)
