"""Search subpackage: the backend client."""

from es_exporter.search.client import ElasticsearchClient, build_ssl_context

__all__ = [
    "ElasticsearchClient",
    "build_ssl_context",
]
