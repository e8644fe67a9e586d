"""缓存新鲜度策略."""

import time
from dataclasses import dataclass, replace

DEFAULT_TTL_MS = 5000


def now_ms() -> float:
    """当前时间（毫秒）."""
    return time.time() * 1000


@dataclass(frozen=True)
class CachePolicy:
    """缓存新鲜度窗口.

    ``last_loaded_at`` 为 None 表示从未加载过，此时总是过期。
    """

    ttl_ms: float = DEFAULT_TTL_MS
    last_loaded_at: float | None = None

    def is_stale(self, now: float) -> bool:
        """距离上次加载是否已超过新鲜度窗口."""
        if self.last_loaded_at is None:
            return True
        return now - self.last_loaded_at >= self.ttl_ms

    def should_load(self, now: float, force: bool = False) -> bool:
        """是否需要重新加载（force 跳过新鲜度窗口）."""
        return force or self.is_stale(now)

    def mark_loaded(self, now: float) -> "CachePolicy":
        return replace(self, last_loaded_at=now)
