"""
Gateway config cache: endpoints config file -> resolved snapshot, reloaded on change.

The file is stat'ed on every get(); it is re-read and re-resolved only when its
mtime or size changes. A file that fails to load leaves the last good snapshot
in place and records the error for the readiness probe.
"""

import json
import logging
import os
import threading
from pathlib import Path

from pydantic import ValidationError

from endpoint_gateway.core.gateway.resolver import (
    EndpointsConfigSnapshot,
    resolve_endpoints_config,
)
from endpoint_gateway.schemas_endpoints import EndpointsConfig, GatewayConfigFile

_LOG = logging.getLogger(__name__)

# (mtime_ns, size) recorded while the file does not exist
_MISSING_STAMP = (-1, -1)


class ConfigLoadError(Exception):
    """The endpoints config file could not be read, parsed or validated."""


def load_endpoints_config_file(path: str | Path) -> EndpointsConfig | None:
    """Read and validate the file; returns its ``endpoints`` section (None if absent)."""
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigLoadError(f"cannot read {path}: {e}") from e
    try:
        data = json.loads(raw) if raw.strip() else {}
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"invalid JSON in {path}: {e}") from e
    try:
        return GatewayConfigFile.model_validate(data).endpoints
    except ValidationError as e:
        raise ConfigLoadError(f"invalid endpoints config in {path}: {e}") from e


class EndpointsConfigCache:
    """
    Live view of the endpoints config.

    ``path=None`` means the feature is disabled: get() always returns None.
    """

    def __init__(self, path: str | Path | None) -> None:
        self._path = Path(path) if path else None
        self._lock = threading.Lock()
        self._stamp: tuple[int, int] | None = None
        self._snapshot: EndpointsConfigSnapshot | None = None
        self.last_error: str | None = None

    @property
    def path(self) -> Path | None:
        return self._path

    def _file_stamp(self) -> tuple[int, int]:
        assert self._path is not None
        try:
            st = os.stat(self._path)
        except OSError:
            return _MISSING_STAMP
        return (st.st_mtime_ns, st.st_size)

    def get(self) -> EndpointsConfigSnapshot | None:
        """
        Current snapshot. Synchronous: one os.stat per call, plus a blocking
        read and re-resolve when the stamp changed. A missing file has its own
        stamp, so it is not re-read until it appears.
        """
        if self._path is None:
            return None
        stamp = self._file_stamp()
        if stamp == self._stamp:
            return self._snapshot
        with self._lock:
            if stamp == self._stamp:
                return self._snapshot
            self.reload(stamp)
            return self._snapshot

    def reload(self, stamp: tuple[int, int] | None = None) -> None:
        """Load and resolve the file now. Keeps the previous snapshot on failure."""
        assert self._path is not None
        try:
            raw = load_endpoints_config_file(self._path)
        except ConfigLoadError as e:
            if self.last_error != str(e):
                _LOG.exception("Failed to load endpoints config")
            self.last_error = str(e)
            self._stamp = stamp
            return
        self._snapshot = resolve_endpoints_config(raw)
        self._stamp = stamp if stamp is not None else self._file_stamp()
        self.last_error = None
        _LOG.info(
            "Endpoints config loaded from %s: %s",
            self._path,
            "disabled"
            if self._snapshot is None
            else f"{len(self._snapshot.entries)} endpoint(s) under {self._snapshot.base_path}",
        )
