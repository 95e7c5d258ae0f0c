"""
Prometheus metrics for the ingestion service.

All metrics live in the default process registry. They are created at import,
never reset, mutated only through ``record_fetch`` and ``record_pass_totals``
and read by the ``/metrics`` route. ``prometheus_client`` guards every
increment and observation with a lock, so a scrape running while a pass is in
progress never sees a torn value.
"""

from prometheus_client import Counter, Summary, generate_latest, CONTENT_TYPE_LATEST

from models.base import SourceType
from core.config import WINDOW_NAMES

# ---------------------------------------------------------------------------
# Call rate (observed once per successful fetch)
# ---------------------------------------------------------------------------

STACKOVERFLOW_API_CALLS = Summary(
    "stackoverflow_api_calls_per_second",
    "Rate of API calls made to StackOverflow per second",
    ["endpoint"],
)

GITHUB_API_CALLS = Summary(
    "github_api_calls_per_second",
    "Rate of API calls made to GitHub per second",
    ["endpoint"],
)

DATA_COLLECTED_PER_SECOND = Summary(
    "data_collected_per_second",
    "Amount of data collected per second",
    ["source"],
)

# ---------------------------------------------------------------------------
# Cumulative counters
# ---------------------------------------------------------------------------

TOTAL_STACKOVERFLOW_API_CALLS = Counter(
    "total_stackoverflow_api_calls",
    "Total number of API calls made to StackOverflow",
)

TOTAL_GITHUB_API_CALLS = Counter(
    "total_github_api_calls",
    "Total number of API calls made to GitHub",
)

STACKOVERFLOW_CALLS_BY_WINDOW = Counter(
    "stackoverflow_api_calls_by_window",
    "Records fetched from StackOverflow per lookback window",
    ["window"],
)

GITHUB_CALLS_BY_WINDOW = Counter(
    "github_api_calls_by_window",
    "Records fetched from GitHub per lookback window",
    ["window"],
)

ENDPOINT_LABELS = {
    SourceType.STACKOVERFLOW: "stackoverflow_endpoint",
    SourceType.GITHUB: "github_endpoint",
}

_RATE_SUMMARIES = {
    SourceType.STACKOVERFLOW: STACKOVERFLOW_API_CALLS,
    SourceType.GITHUB: GITHUB_API_CALLS,
}

_CALL_COUNTERS = {
    SourceType.STACKOVERFLOW: TOTAL_STACKOVERFLOW_API_CALLS,
    SourceType.GITHUB: TOTAL_GITHUB_API_CALLS,
}

_WINDOW_COUNTERS = {
    SourceType.STACKOVERFLOW: STACKOVERFLOW_CALLS_BY_WINDOW,
    SourceType.GITHUB: GITHUB_CALLS_BY_WINDOW,
}

# Export every series at zero before the first pass
for _source, _summary in _RATE_SUMMARIES.items():
    _summary.labels(endpoint=ENDPOINT_LABELS[_source])
    DATA_COLLECTED_PER_SECOND.labels(source=_source.value)
for _counter in _WINDOW_COUNTERS.values():
    for _window in WINDOW_NAMES:
        _counter.labels(window=_window)


def record_fetch(source: SourceType, elapsed_seconds: float, records: int) -> None:
    """
    Record one successful fetch.

    An elapsed time of zero is treated as one second.
    """
    if elapsed_seconds <= 0:
        elapsed_seconds = 1.0

    _RATE_SUMMARIES[source].labels(endpoint=ENDPOINT_LABELS[source]).observe(1 / elapsed_seconds)
    DATA_COLLECTED_PER_SECOND.labels(source=source.value).observe(records / elapsed_seconds)
    _CALL_COUNTERS[source].inc()


def record_pass_totals(source: SourceType, window: str, records: int) -> None:
    """Add a pass's fetched-record total to a lookback window counter."""
    _WINDOW_COUNTERS[source].labels(window=window).inc(records)


def expose_metrics() -> bytes:
    return generate_latest()


__all__ = [
    "CONTENT_TYPE_LATEST",
    "ENDPOINT_LABELS",
    "expose_metrics",
    "record_fetch",
    "record_pass_totals",
]
