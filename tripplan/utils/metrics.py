"""Prometheus metrics for outbound requests, decoding, and enrichment."""

from prometheus_client import Counter, Gauge, Histogram

# Outbound request metrics
request_latency_ms = Histogram(
    "request_latency_ms",
    "Outbound request latency in milliseconds",
    ["request", "outcome"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 5000, 15000, 60000, 120000],
)

request_errors_total = Counter(
    "request_errors_total",
    "Total outbound request errors",
    ["request", "reason"],
)

# Pipeline metrics
decode_stage_total = Counter(
    "decode_stage_total",
    "Decoder stage that produced the payload (or 'failed')",
    ["stage"],
)

plan_results_total = Counter(
    "plan_results_total",
    "Plan generation results by status",
    ["status"],
)

# Enrichment metrics
poi_cache_hits_total = Counter(
    "poi_cache_hits_total",
    "POI cache hits",
    ["kind"],
)

poi_fallback_total = Counter(
    "poi_fallback_total",
    "Enrichment records by fallback tier",
    ["tier"],
)

poi_cache_entries = Gauge(
    "poi_cache_entries",
    "Entries in the process-wide POI cache, sampled at scrape time",
)


class PrometheusRequestMetrics:
    """Prometheus-based request metrics implementation."""

    def record_latency(self, request: str, outcome: str, latency_ms: float) -> None:
        """Record request latency."""
        request_latency_ms.labels(request=request, outcome=outcome).observe(latency_ms)

    def inc_error(self, request: str, reason: str) -> None:
        """Increment error counter."""
        request_errors_total.labels(request=request, reason=reason).inc()
