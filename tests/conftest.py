"""Shared test fixtures for all test modules."""

import pytest
from prometheus_client import CollectorRegistry

from es_exporter.config import LabelMapping, QuerySpec, QueryType
from es_exporter.monitoring.registry import MetricRegistry


@pytest.fixture
def collector_registry() -> CollectorRegistry:
    """A fresh prometheus registry so tests never share series."""
    return CollectorRegistry()


@pytest.fixture
def metric_registry(collector_registry: CollectorRegistry) -> MetricRegistry:
    return MetricRegistry(collector_registry)


@pytest.fixture
def make_spec():
    """Factory fixture for QuerySpec objects with sensible defaults."""

    def _make(
        name: str = "by_host",
        *,
        type: QueryType = QueryType.BUCKETED,
        metric_name: str = "docs_by_host",
        labels: dict[str, str] | None = None,
        value_path: str = "doc_count",
        interval_s: float | None = None,
    ) -> QuerySpec:
        if labels is None:
            labels = {"host": "key"} if type is QueryType.BUCKETED else {}
        return QuerySpec(
            name=name,
            type=type,
            body={"size": 0},
            metric_name=metric_name,
            labels=tuple(LabelMapping(n, p) for n, p in labels.items()),
            value_path=value_path if type is QueryType.BUCKETED else "",
            interval_s=interval_s,
        )

    return _make
