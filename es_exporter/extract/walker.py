from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from es_exporter.config import QuerySpec, QueryType
from es_exporter.errors import ItemError, MalformedResponse, MissingBuckets
from es_exporter.extract.paths import as_label, as_number, resolve
from es_exporter.monitoring.logging_utils import get_logger

LOGGER = get_logger("walker")

AGGREGATION_KEY = "0"
TOTAL_HITS_PATH = "hits.total.value"
LEGACY_TOTAL_HITS_PATH = "hits.total"


@dataclass(frozen=True)
class ExtractedObservation:
    metric_name: str
    query_name: str
    label_names: tuple[str, ...]
    label_values: tuple[str, ...]
    value: float


class Extractor(Protocol):
    def extract(
        self, response: Mapping[str, Any], spec: QuerySpec
    ) -> Iterator[ExtractedObservation]: ...


def total_hits(response: Any) -> float | None:
    """Return the response's total hit count, or None when it has none."""
    if not isinstance(response, Mapping):
        return None
    for path in (TOTAL_HITS_PATH, LEGACY_TOTAL_HITS_PATH):
        try:
            return as_number(resolve(response, path), path)
        except ItemError:
            continue
    return None


class BucketExtractor:
    """Reads one observation per bucket of the first aggregation."""

    def extract(
        self, response: Mapping[str, Any], spec: QuerySpec
    ) -> Iterator[ExtractedObservation]:
        aggregations = response.get("aggregations")
        if not isinstance(aggregations, Mapping):
            raise MissingBuckets(f"query {spec.name!r}: response has no aggregations")
        aggregation = aggregations.get(AGGREGATION_KEY)
        buckets = (
            aggregation.get("buckets") if isinstance(aggregation, Mapping) else None
        )
        if not isinstance(buckets, Sequence) or isinstance(buckets, (str, bytes)):
            raise MissingBuckets(
                f"query {spec.name!r}: aggregation {AGGREGATION_KEY!r} has no buckets"
            )
        return self._walk(buckets, spec)

    def _walk(
        self, buckets: Sequence[Any], spec: QuerySpec
    ) -> Iterator[ExtractedObservation]:
        for position, bucket in enumerate(buckets):
            try:
                value = as_number(resolve(bucket, spec.value_path), spec.value_path)
                label_values = tuple(
                    as_label(resolve(bucket, label.path), label.path)
                    for label in spec.labels
                )
            except ItemError as exc:
                LOGGER.warning(
                    "query %s: dropping bucket %d: %s", spec.name, position, exc
                )
                continue
            yield ExtractedObservation(
                metric_name=spec.metric_name,
                query_name=spec.name,
                label_names=spec.label_names,
                label_values=label_values,
                value=value,
            )


class HitCountExtractor:
    """Reads the single total hit count of a raw query."""

    def extract(
        self, response: Mapping[str, Any], spec: QuerySpec
    ) -> Iterator[ExtractedObservation]:
        count = total_hits(response)
        if count is None:
            raise MissingBuckets(f"query {spec.name!r}: response has no hit total")
        return iter(
            [
                ExtractedObservation(
                    metric_name=spec.metric_name,
                    query_name=spec.name,
                    label_names=(),
                    label_values=(),
                    value=count,
                )
            ]
        )


EXTRACTORS: dict[QueryType, Extractor] = {
    QueryType.BUCKETED: BucketExtractor(),
    QueryType.RAW: HitCountExtractor(),
}


def extract(response: Any, spec: QuerySpec) -> Iterator[ExtractedObservation]:
    """Turn a search response into observations for ``spec``.

    Response-level problems raise immediately. Bucket-level problems are
    logged and the bucket is skipped while the returned iterator is consumed.
    """
    if not isinstance(response, Mapping):
        raise MalformedResponse(
            f"query {spec.name!r}: expected an object, got {type(response).__name__}"
        )
    return EXTRACTORS[spec.type].extract(response, spec)
