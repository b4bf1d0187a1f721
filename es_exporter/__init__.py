"""Elasticsearch query exporter package."""

from es_exporter.config import (
    ExporterConfig,
    LabelMapping,
    QuerySpec,
    QueryType,
    Settings,
    load_config,
)
from es_exporter.errors import (
    BackendError,
    ConfigError,
    ExporterError,
    MalformedResponse,
    MissingBuckets,
    PathNotFound,
    SchemaConflict,
    TransportError,
    ValueTypeMismatch,
)

# Extract
from es_exporter.extract.paths import resolve
from es_exporter.extract.walker import ExtractedObservation, extract

# Monitoring
from es_exporter.monitoring.registry import MetricRegistry
from es_exporter.monitoring.metrics_server import start_metrics_server

# Search
from es_exporter.search.client import ElasticsearchClient

# Scheduling
from es_exporter.scheduler import QueryScheduler, SchedulerState, run_schedulers

__all__ = [
    # config
    "ExporterConfig",
    "LabelMapping",
    "QuerySpec",
    "QueryType",
    "Settings",
    "load_config",
    # errors
    "BackendError",
    "ConfigError",
    "ExporterError",
    "MalformedResponse",
    "MissingBuckets",
    "PathNotFound",
    "SchemaConflict",
    "TransportError",
    "ValueTypeMismatch",
    # extract
    "ExtractedObservation",
    "extract",
    "resolve",
    # monitoring
    "MetricRegistry",
    "start_metrics_server",
    # search
    "ElasticsearchClient",
    # scheduling
    "QueryScheduler",
    "SchedulerState",
    "run_schedulers",
]
