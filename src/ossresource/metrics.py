"""Prometheus metrics definitions for ossresource.

All metrics use the ``ossresource_`` prefix for namespace isolation.
Collectors are created by ``init_metrics()``; until then the module-level
references stay ``None`` and the recording helpers are no-ops, so library
users that never enable metrics register nothing in the global registry.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

# ---------------------------------------------------------------------------
# Upload counters  (labels: status)
# ---------------------------------------------------------------------------
uploads_total: Counter | None = None
uploads_in_flight: Gauge | None = None

# ---------------------------------------------------------------------------
# Byte counters
# ---------------------------------------------------------------------------
bytes_uploaded_total: Counter | None = None
bytes_downloaded_total: Counter | None = None

# ---------------------------------------------------------------------------
# Store round-trips  (labels: operation, status)
# ---------------------------------------------------------------------------
store_requests_total: Counter | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics.

    Safe to call more than once; only the first call registers collectors.
    """
    global _initialized
    global uploads_total, uploads_in_flight
    global bytes_uploaded_total, bytes_downloaded_total, store_requests_total

    if _initialized:
        return

    uploads_total = Counter(
        "ossresource_uploads_total",
        "Total streaming uploads by outcome",
        ["status"],
    )

    uploads_in_flight = Gauge(
        "ossresource_uploads_in_flight",
        "Streaming uploads whose worker has not finished",
    )

    bytes_uploaded_total = Counter(
        "ossresource_bytes_uploaded_total",
        "Total bytes written to upload streams",
    )

    bytes_downloaded_total = Counter(
        "ossresource_bytes_downloaded_total",
        "Total bytes read from object read streams",
    )

    store_requests_total = Counter(
        "ossresource_store_requests_total",
        "Total object store round-trips by operation and outcome",
        ["operation", "status"],
    )

    _initialized = True


def record_store_request(operation: str, status: str) -> None:
    """Count one store round-trip if metrics are enabled."""
    if store_requests_total is not None:
        store_requests_total.labels(operation=operation, status=status).inc()


def record_upload(status: str, nbytes: int) -> None:
    """Count a finished upload and its bytes if metrics are enabled."""
    if uploads_total is not None:
        uploads_total.labels(status=status).inc()
    if bytes_uploaded_total is not None and nbytes:
        bytes_uploaded_total.inc(nbytes)


def record_download(nbytes: int) -> None:
    if bytes_downloaded_total is not None and nbytes:
        bytes_downloaded_total.inc(nbytes)
