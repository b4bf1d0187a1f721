import asyncio
import json
import ssl
from typing import Any

import aiohttp

from es_exporter.config import ExporterConfig, Settings
from es_exporter.errors import BackendError, ConfigError, TransportError
from es_exporter.monitoring.logging_utils import get_event_logger, get_logger

LOGGER = get_logger("search")
log_event = get_event_logger("search")


def build_ssl_context(config: ExporterConfig) -> ssl.SSLContext | bool | None:
    """TLS settings for the backend connection.

    A CA bundle wins over ``insecure_skip_verify``. ``None`` keeps the
    default verification.
    """
    if config.elasticsearch_ca_cert_path:
        try:
            return ssl.create_default_context(
                cafile=config.elasticsearch_ca_cert_path
            )
        except (OSError, ssl.SSLError) as exc:
            raise ConfigError(
                f"cannot load CA certificate {config.elasticsearch_ca_cert_path}: {exc}"
            ) from exc
    if config.insecure_skip_verify:
        return False
    return None


def _error_reason(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    error = payload.get("error")
    if isinstance(error, dict):
        return str(error.get("reason") or error.get("type") or "")
    return str(error or "")


class ElasticsearchClient:
    """Runs search bodies against ``<url>/_search``."""

    def __init__(
        self,
        url: str,
        *,
        username: str = "",
        password: str = "",
        ssl_context: ssl.SSLContext | bool | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self.search_url = f"{url.rstrip('/')}/_search"
        self._auth = aiohttp.BasicAuth(username, password) if username else None
        self._ssl = ssl_context
        self._timeout = aiohttp.ClientTimeout(
            total=timeout_s if timeout_s is not None else Settings.request_timeout_s
        )
        self._session: aiohttp.ClientSession | None = None

    @classmethod
    def from_config(cls, config: ExporterConfig) -> "ElasticsearchClient":
        return cls(
            config.elasticsearch_url,
            username=config.elasticsearch_username,
            password=config.elasticsearch_password,
            ssl_context=build_ssl_context(config),
        )

    async def __aenter__(self) -> "ElasticsearchClient":
        connector = aiohttp.TCPConnector(ssl=self._ssl) if self._ssl is not None else None
        self._session = aiohttp.ClientSession(
            auth=self._auth, timeout=self._timeout, connector=connector
        )
        log_event("connect", url=self.search_url)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def execute(self, body: dict[str, Any]) -> Any:
        if self._session is None:
            raise RuntimeError("client used outside of 'async with'")
        try:
            async with self._session.post(
                self.search_url,
                json=body,
                params={"track_total_hits": "true"},
            ) as response:
                status = response.status
                raw = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(
                f"search request failed: {type(exc).__name__}: {exc}"
            ) from exc
        text = raw.decode("utf-8", errors="replace")
        LOGGER.debug("search response status=%s body=%s", status, text)
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            if status >= 400:
                raise BackendError(
                    f"search returned {status}: {text[:200]}", status
                ) from exc
            raise BackendError(
                f"undecodable search response (status {status})", status
            ) from exc
        if status >= 400:
            reason = _error_reason(payload) or text[:200]
            raise BackendError(f"search returned {status}: {reason}", status)
        return payload
