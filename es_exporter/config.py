import json
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from es_exporter.errors import ConfigError


load_dotenv("secrets.env", override=False)


def env_bool(name: str, default: str = "false") -> bool:
    value = os.getenv(name, default).strip().lower()
    return value in {"1", "true", "yes", "y", "on"}


class Settings:
    config_path = os.getenv("CONFIG_PATH", "/app/config/config.json")
    debug = env_bool("DEBUG", "false")
    event_log = env_bool("EVENT_LOG", "true")
    request_timeout_s = float(os.getenv("REQUEST_TIMEOUT_S", 30))
    default_interval_s = float(os.getenv("QUERY_INTERVAL", 60))
    metrics_port = int(os.getenv("METRICS_PORT", 9100))
    elasticsearch_username = os.getenv("ELASTICSEARCH_USERNAME", "")
    elasticsearch_password = os.getenv("ELASTICSEARCH_PASSWORD", "")


RESERVED_LABEL = "query_name"
_METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
_LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class QueryType(str, Enum):
    RAW = "raw"
    BUCKETED = "bucketed"

    @classmethod
    def parse(cls, value: str | None) -> "QueryType":
        if value in (None, "", "default"):
            return cls.BUCKETED
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(f"unknown query type {value!r}") from None


@dataclass(frozen=True)
class LabelMapping:
    name: str
    path: str


@dataclass(frozen=True)
class QuerySpec:
    name: str
    type: QueryType
    body: dict[str, Any]
    metric_name: str
    labels: tuple[LabelMapping, ...] = ()
    value_path: str = ""
    interval_s: float | None = None

    @property
    def label_names(self) -> tuple[str, ...]:
        return tuple(label.name for label in self.labels)


@dataclass(frozen=True)
class ExporterConfig:
    elasticsearch_url: str
    queries: tuple[QuerySpec, ...]
    elasticsearch_username: str = ""
    elasticsearch_password: str = ""
    elasticsearch_ca_cert_path: str = ""
    elasticsearch_version: int = 8
    insecure_skip_verify: bool = False
    prometheus_port: int = field(default_factory=lambda: Settings.metrics_port)
    query_interval_s: float = field(
        default_factory=lambda: Settings.default_interval_s
    )

    def interval_for(self, spec: QuerySpec) -> float:
        if spec.interval_s is not None:
            return spec.interval_s
        return self.query_interval_s


def _read_json(path: Path, what: str) -> Any:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read {what} {path}: {exc}") from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"cannot decode {what} {path}: {exc}") from exc


def _setting(data: dict[str, Any], key: str, default: Any) -> Any:
    value = data.get(key)
    return default if value is None else value


def _positive(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{what} must be a positive number, got {value!r}")
    return float(value)


def _parse_labels(name: str, raw_labels: Any) -> tuple[LabelMapping, ...]:
    if raw_labels is None:
        return ()
    if not isinstance(raw_labels, list):
        raise ConfigError(f"query {name!r}: 'labels' must be a list")
    labels: list[LabelMapping] = []
    seen: set[str] = set()
    for raw in raw_labels:
        if not isinstance(raw, dict):
            raise ConfigError(f"query {name!r}: label entries must be objects")
        label_name = str(raw.get("name") or "")
        label_path = str(raw.get("path") or "")
        if (
            not _LABEL_NAME_RE.match(label_name)
            or label_name.startswith("__")
            or label_name == RESERVED_LABEL
        ):
            raise ConfigError(f"query {name!r}: invalid label name {label_name!r}")
        if label_name in seen:
            raise ConfigError(f"query {name!r}: duplicate label {label_name!r}")
        if not label_path:
            raise ConfigError(f"query {name!r}: label {label_name!r} has no path")
        seen.add(label_name)
        labels.append(LabelMapping(name=label_name, path=label_path))
    return tuple(labels)


def _load_body(raw: dict[str, Any], name: str, queries_dir: Path) -> dict[str, Any]:
    if raw.get("query") is not None:
        body = raw["query"]
    elif raw.get("query_file"):
        query_path = Path(raw["query_file"])
        if not query_path.is_absolute():
            query_path = queries_dir / query_path
        body = _read_json(query_path, f"query file for {name!r}")
    else:
        raise ConfigError(f"query {name!r}: needs 'query' or 'query_file'")
    if not isinstance(body, dict):
        raise ConfigError(f"query {name!r}: query body must be a JSON object")
    return body


def parse_query(raw: Any, queries_dir: Path) -> QuerySpec:
    if not isinstance(raw, dict):
        raise ConfigError("query entries must be objects")
    name = str(raw.get("name") or "").strip()
    if not name:
        raise ConfigError("query without a name")
    query_type = QueryType.parse(raw.get("type"))
    metric_name = str(raw.get("metric_name") or "")
    if not _METRIC_NAME_RE.match(metric_name):
        raise ConfigError(f"query {name!r}: invalid metric name {metric_name!r}")
    labels = _parse_labels(name, raw.get("labels"))
    value_path = str(raw.get("value_path") or "")
    if query_type is QueryType.RAW and labels:
        raise ConfigError(f"query {name!r}: raw queries cannot declare labels")
    if query_type is QueryType.BUCKETED and not value_path:
        raise ConfigError(f"query {name!r}: bucketed queries need 'value_path'")
    interval = raw.get("interval")
    return QuerySpec(
        name=name,
        type=query_type,
        body=_load_body(raw, name, queries_dir),
        metric_name=metric_name,
        labels=labels,
        value_path=value_path,
        interval_s=None if interval is None else _positive(
            interval, f"query {name!r}: interval"
        ),
    )


def parse_config(data: Any, base_dir: Path) -> ExporterConfig:
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a JSON object")
    url = str(data.get("elasticsearch_url") or "").strip()
    if not url:
        raise ConfigError("'elasticsearch_url' is required")
    queries_dir = Path(data["queries_path"]) if data.get("queries_path") else base_dir
    if not queries_dir.is_absolute():
        queries_dir = base_dir / queries_dir
    raw_queries = data.get("queries") or []
    if not isinstance(raw_queries, list):
        raise ConfigError("'queries' must be a list")
    queries: list[QuerySpec] = []
    names: set[str] = set()
    for raw in raw_queries:
        spec = parse_query(raw, queries_dir)
        if spec.name in names:
            raise ConfigError(f"duplicate query name {spec.name!r}")
        names.add(spec.name)
        queries.append(spec)
    version = _setting(data, "elasticsearch_version", 8)
    if version not in (7, 8):
        raise ConfigError(f"unsupported elasticsearch_version {version!r}")
    port = _setting(data, "prometheus_port", Settings.metrics_port)
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        raise ConfigError(f"invalid prometheus_port {port!r}")
    interval = _setting(data, "query_interval", Settings.default_interval_s)
    insecure = _setting(data, "insecure_skip_verify", False)
    if not isinstance(insecure, bool):
        raise ConfigError(
            f"insecure_skip_verify must be true or false, got {insecure!r}"
        )
    return ExporterConfig(
        elasticsearch_url=url.rstrip("/"),
        queries=tuple(queries),
        elasticsearch_username=data.get("elasticsearch_username")
        or Settings.elasticsearch_username,
        elasticsearch_password=data.get("elasticsearch_password")
        or Settings.elasticsearch_password,
        elasticsearch_ca_cert_path=data.get("elasticsearch_ca_cert_path") or "",
        elasticsearch_version=version,
        insecure_skip_verify=insecure,
        prometheus_port=port,
        query_interval_s=_positive(interval, "query_interval"),
    )


def load_config(path: str | Path | None = None) -> ExporterConfig:
    config_path = Path(path or Settings.config_path)
    data = _read_json(config_path, "configuration")
    return parse_config(data, config_path.resolve().parent)
