"""Monitoring subpackage: observability components."""

from es_exporter.monitoring.logging_utils import get_event_logger, get_logger, log_event
from es_exporter.monitoring.metrics import (
    QUERY_DURATION_MS,
    QUERY_ERRORS,
    QUERY_HITS,
    QUERY_LAST_SUCCESS,
    record_error,
    record_execution,
    record_success,
)
from es_exporter.monitoring.metrics_server import start_metrics_server
from es_exporter.monitoring.registry import MetricRegistry, MetricSeries

__all__ = [
    # logging
    "get_event_logger",
    "get_logger",
    "log_event",
    # metrics
    "QUERY_DURATION_MS",
    "QUERY_ERRORS",
    "QUERY_HITS",
    "QUERY_LAST_SUCCESS",
    "record_error",
    "record_execution",
    "record_success",
    # metrics_server
    "start_metrics_server",
    # registry
    "MetricRegistry",
    "MetricSeries",
]
