"""
Gateway rate limiting: SlidingWindowRateLimiter.

Sliding window: at most N admitted requests per key within the trailing
window, recomputed on every check. In-memory only; counters are lost on
restart and are not shared across processes.
"""

import logging
import threading
import time

logger = logging.getLogger(__name__)

_GC_INTERVAL = 60.0


class _Bucket:
    __slots__ = ("lock", "timestamps", "dropped")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.timestamps: list[float] = []
        self.dropped = False


class SlidingWindowRateLimiter:
    """
    Per-key sliding-window counters.

    One instance per app, created at startup and handed to the request
    handler. Each bucket has its own lock, so prune + append is atomic per key
    under threaded servers as well as on the event loop.
    """

    def __init__(self, *, clock=time.monotonic) -> None:
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}
        self._buckets_lock = threading.Lock()
        self._last_gc: float = 0.0

    def _bucket(self, key: str) -> _Bucket:
        with self._buckets_lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = self._buckets[key] = _Bucket()
            return bucket

    def admit(
        self,
        key: str,
        max_requests: int,
        window_seconds: float,
        now: float | None = None,
    ) -> bool:
        """
        True = allowed and counted, False = over limit (not counted).

        Timestamps at or before ``now - window_seconds`` are dropped first.
        """
        if now is None:
            now = self._clock()
        cutoff = now - window_seconds
        while True:
            bucket = self._bucket(key)
            with bucket.lock:
                if bucket.dropped:
                    # collected between lookup and lock; take the new bucket
                    continue
                arr = [t for t in bucket.timestamps if t > cutoff]
                allowed = len(arr) < max_requests
                if allowed:
                    arr.append(now)
                bucket.timestamps = arr
                break
        logger.debug(
            "rate limit key=%s count=%d max=%d allowed=%s",
            key,
            len(arr),
            max_requests,
            allowed,
        )
        self._gc(now, window_seconds)
        return allowed

    def _gc(self, now: float, window_seconds: float) -> None:
        """Drop buckets whose newest timestamp has left the window."""
        if (now - self._last_gc) < _GC_INTERVAL:
            return
        self._last_gc = now
        cutoff = now - window_seconds
        with self._buckets_lock:
            for k, bucket in list(self._buckets.items()):
                with bucket.lock:
                    if bucket.timestamps and bucket.timestamps[-1] <= cutoff:
                        bucket.dropped = True
                        del self._buckets[k]

    def count(self, key: str) -> int:
        """Timestamps currently retained for key (as of the last check)."""
        with self._buckets_lock:
            bucket = self._buckets.get(key)
        if bucket is None:
            return 0
        with bucket.lock:
            return len(bucket.timestamps)

    def reset(self) -> None:
        with self._buckets_lock:
            for bucket in self._buckets.values():
                bucket.dropped = True
            self._buckets.clear()
            self._last_gc = 0.0
