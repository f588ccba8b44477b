import threading
from dataclasses import dataclass, field


@dataclass
class QueryMetrics:
    """Track performance metrics for completion operations.

    Recorded from many request threads at once, so every mutation holds
    ``_lock``.
    """

    total_queries: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    total_query_time_ms: float = 0.0
    upserts: int = 0
    evictions: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_queries == 0:
            return 0.0
        return self.cache_hits / self.total_queries

    @property
    def avg_query_time_ms(self) -> float:
        """Calculate average query time."""
        if self.total_queries == 0:
            return 0.0
        return self.total_query_time_ms / self.total_queries

    def record_hit(self, query_time_ms: float) -> None:
        """Record a query served from the cache."""
        with self._lock:
            self.total_queries += 1
            self.cache_hits += 1
            self.total_query_time_ms += query_time_ms

    def record_miss(self, query_time_ms: float) -> None:
        """Record a query served from the store."""
        with self._lock:
            self.total_queries += 1
            self.cache_misses += 1
            self.total_query_time_ms += query_time_ms

    def record_upsert(self, evicted: int = 0) -> None:
        with self._lock:
            self.upserts += 1
            self.evictions += evicted

    def reset(self) -> None:
        with self._lock:
            self.total_queries = 0
            self.cache_hits = 0
            self.cache_misses = 0
            self.total_query_time_ms = 0.0
            self.upserts = 0
            self.evictions = 0

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "total_queries": self.total_queries,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "hit_rate": self.hit_rate,
            "avg_query_time_ms": self.avg_query_time_ms,
            "upserts": self.upserts,
            "evictions": self.evictions,
        }
