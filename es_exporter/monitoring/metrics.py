import time

from prometheus_client import Counter, Gauge


QUERY_HITS = Gauge(
    "elastic_query_hits", "Number of documents matching the query", ["query_name"]
)
QUERY_DURATION_MS = Gauge(
    "elastic_query_duration_milliseconds",
    "Execution time of the last successful query in milliseconds",
    ["query_name"],
)
QUERY_ERRORS = Counter(
    "elastic_query_errors",
    "Query cycles that failed, by error type",
    ["query_name", "error_type"],
)
QUERY_LAST_SUCCESS = Gauge(
    "elastic_query_last_success_timestamp_seconds",
    "Unix time of the last fully successful query cycle",
    ["query_name"],
)


def record_execution(query_name: str, duration_ms: float, hits: float | None) -> None:
    QUERY_DURATION_MS.labels(query_name=query_name).set(duration_ms)
    if hits is not None:
        QUERY_HITS.labels(query_name=query_name).set(hits)


def record_success(query_name: str) -> None:
    QUERY_LAST_SUCCESS.labels(query_name=query_name).set(time.time())


def record_error(query_name: str, exc: BaseException) -> None:
    QUERY_ERRORS.labels(query_name=query_name, error_type=type(exc).__name__).inc()
