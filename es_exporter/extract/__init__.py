"""Extract subpackage: turning search responses into observations."""

from es_exporter.extract.paths import as_label, as_number, resolve
from es_exporter.extract.walker import (
    AGGREGATION_KEY,
    BucketExtractor,
    ExtractedObservation,
    HitCountExtractor,
    extract,
    total_hits,
)

__all__ = [
    # paths
    "as_label",
    "as_number",
    "resolve",
    # walker
    "AGGREGATION_KEY",
    "BucketExtractor",
    "ExtractedObservation",
    "HitCountExtractor",
    "extract",
    "total_hits",
]
