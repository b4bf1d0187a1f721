from prometheus_client import REGISTRY, CollectorRegistry, start_http_server

from es_exporter.monitoring.logging_utils import get_event_logger

log_event = get_event_logger("metrics")


def start_metrics_server(port: int, registry: CollectorRegistry = REGISTRY) -> None:
    """Serve ``GET /metrics`` for ``registry`` from a background thread."""
    start_http_server(port, registry=registry)
    log_event("serve", port=port, path="/metrics")
