from collections.abc import Mapping
from typing import Any

from es_exporter.errors import PathNotFound, ValueTypeMismatch

PATH_DELIMITER = "."


def resolve(document: Any, path: str) -> Any:
    """Walk ``document`` one dotted segment at a time.

    Every segment must name a key of a mapping. The value found at the
    terminal segment is returned as-is, mappings included.
    """
    current = document
    for index, segment in enumerate(path.split(PATH_DELIMITER)):
        if not isinstance(current, Mapping) or segment not in current:
            raise PathNotFound(path, index)
        current = current[segment]
    return current


def as_number(value: Any, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueTypeMismatch(path, value, "number")
    try:
        return float(value)
    except OverflowError:
        raise ValueTypeMismatch(path, value, "float64-sized number") from None


def as_label(value: Any, path: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        # date_histogram keys arrive as floats like 1.7e12
        if value.is_integer():
            return str(int(value))
        return repr(value)
    raise ValueTypeMismatch(path, value, "text")
