import asyncio
import time


class TokenBucket:
    """
    Requests-per-minute bucket. A size of 0 disables limiting.
    """

    def __init__(self, size: int = 0) -> None:
        self._maximum_size = max(0, int(size))
        self._current_size = float(self._maximum_size)
        self._consume_per_second = (self._maximum_size / 60) if self._maximum_size > 0 else 0.0
        self._last_fill_time = time.monotonic()
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self._maximum_size > 0

    async def consume(self, amount: int = 1) -> None:
        if amount == 0 or self._maximum_size == 0:
            return

        async with self._lock:
            if amount > self._maximum_size:
                raise ValueError("Amount exceeds bucket size.")

            self._refill()

            while amount > self._current_size:
                await asyncio.sleep(0.05)
                self._refill()

            self._current_size -= amount

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_fill_time
        self._current_size = min(float(self._maximum_size), self._current_size + elapsed * self._consume_per_second)
        self._last_fill_time = now


class FeatureRateLimiter:
    """One bucket per feature id, sized from the feature's ``maxRpm``."""

    def __init__(self) -> None:
        self._buckets: dict[str, TokenBucket] = {}

    def bucket_for(self, feature_id: str, max_rpm: int | None) -> TokenBucket | None:
        if not max_rpm or max_rpm <= 0:
            return None
        bucket = self._buckets.get(feature_id)
        if bucket is None:
            bucket = TokenBucket(size=max_rpm)
            self._buckets[feature_id] = bucket
        return bucket


__all__ = ["FeatureRateLimiter", "TokenBucket"]
