import threading
from collections.abc import Sequence
from dataclasses import dataclass

from prometheus_client import REGISTRY, CollectorRegistry, Gauge

from es_exporter.config import RESERVED_LABEL
from es_exporter.errors import SchemaConflict


@dataclass(frozen=True)
class MetricSeries:
    name: str
    label_schema: tuple[str, ...]
    handle: Gauge


class MetricRegistry:
    """Gauge families created on first use and keyed by metric name.

    Every family carries ``query_name`` as its first label, followed by the
    label names of the query that created it. Later callers must present
    the same label names in the same order.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self._registry = registry
        self._series: dict[str, MetricSeries] = {}
        self._lock = threading.Lock()

    def register(
        self,
        metric_name: str,
        label_names: Sequence[str],
        documentation: str = "",
    ) -> MetricSeries:
        schema = (RESERVED_LABEL, *label_names)
        with self._lock:
            series = self._series.get(metric_name)
            if series is None:
                try:
                    gauge = Gauge(
                        metric_name,
                        documentation or f"Metric {metric_name}",
                        list(schema),
                        registry=self._registry,
                    )
                except ValueError as exc:
                    # name already taken by a collector outside this registry
                    raise SchemaConflict(metric_name, (), schema) from exc
                series = MetricSeries(metric_name, schema, gauge)
                self._series[metric_name] = series
            elif series.label_schema != schema:
                raise SchemaConflict(metric_name, series.label_schema, schema)
        return series

    def observe(
        self,
        metric_name: str,
        query_name: str,
        label_names: Sequence[str],
        label_values: Sequence[str],
        value: float,
    ) -> None:
        if len(label_values) != len(label_names):
            raise ValueError(
                f"{len(label_names)} label names but {len(label_values)} values"
            )
        series = self.register(
            metric_name, label_names, f"Metric for query {query_name}"
        )
        series.handle.labels(query_name, *label_values).set(value)

    def get(self, metric_name: str) -> MetricSeries | None:
        with self._lock:
            return self._series.get(metric_name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)
