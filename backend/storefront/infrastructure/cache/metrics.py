"""
Cache Metrics

Prometheus counters shared by every tagged cache backend.
"""

from prometheus_client import Counter

cache_hits = Counter(
    "storefront_cache_hits_total", "Cache lookups served from a live entry", ["backend"]
)
cache_misses = Counter(
    "storefront_cache_misses_total", "Cache lookups that ran the producer", ["backend"]
)
cache_stores_skipped = Counter(
    "storefront_cache_stores_skipped_total",
    "Computed values not stored because a flush ran during computation",
    ["backend"],
)
cache_flushes = Counter(
    "storefront_cache_flushes_total", "Tag flush operations", ["backend"]
)
cache_errors = Counter(
    "storefront_cache_errors_total",
    "Backend failures absorbed by the cache store",
    ["backend", "operation"],
)
