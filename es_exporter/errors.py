class ExporterError(Exception):
    """Base class for every error raised by the exporter."""


class ConfigError(ExporterError):
    """Configuration or startup material is unusable. Fatal at startup."""


class SearchError(ExporterError):
    """A search call failed. The cycle is skipped."""


class TransportError(SearchError):
    pass


class BackendError(SearchError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ExtractionError(ExporterError):
    """The response as a whole cannot be walked. The cycle is skipped."""


class MalformedResponse(ExtractionError):
    pass


class MissingBuckets(ExtractionError):
    pass


class ItemError(ExporterError):
    """A single bucket or hit cannot be read. Only that item is dropped."""


class PathNotFound(ItemError):
    def __init__(self, path: str, index: int) -> None:
        self.path = path
        self.index = index
        self.segment = path.split(".")[index]
        super().__init__(
            f"path {path!r} not found at segment {index} ({self.segment!r})"
        )


class ValueTypeMismatch(ItemError):
    def __init__(self, path: str, value: object, expected: str) -> None:
        self.path = path
        self.value = value
        self.expected = expected
        super().__init__(
            f"path {path!r} holds {type(value).__name__}, expected {expected}"
        )


class SchemaConflict(ExporterError):
    def __init__(
        self,
        metric_name: str,
        stored: tuple[str, ...],
        requested: tuple[str, ...],
    ) -> None:
        self.metric_name = metric_name
        self.stored = stored
        self.requested = requested
        super().__init__(
            f"metric {metric_name!r} is registered with labels {list(stored)}, "
            f"got {list(requested)}"
        )
