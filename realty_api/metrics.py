"""
Prometheus Metrics

Process-local collectors for the view counter and the stats cache, exposed
on ``/metrics`` by the API app.
"""

from prometheus_client import Counter, Histogram


# =============================================================================
# PROPERTY VIEWS
# =============================================================================

PROPERTY_VIEWS = Counter(
    "realty_property_views_total",
    "Property view events by outcome",
    ["outcome"],
)


# =============================================================================
# STATS CACHE
# =============================================================================

STATS_CACHE_REQUESTS = Counter(
    "realty_stats_cache_requests_total",
    "Stats cache lookups by result",
    ["cache", "result"],
)

STATS_COMPUTE_TIME = Histogram(
    "realty_stats_compute_seconds",
    "Time spent computing a stats payload",
    ["cache"],
)
