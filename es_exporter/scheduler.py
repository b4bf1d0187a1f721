import asyncio
import time
from dataclasses import dataclass
from typing import Any, Protocol

from es_exporter.config import ExporterConfig, QuerySpec
from es_exporter.errors import ExporterError, SchemaConflict
from es_exporter.extract.walker import extract, total_hits
from es_exporter.monitoring.logging_utils import get_event_logger, get_logger
from es_exporter.monitoring.metrics import record_error, record_execution, record_success
from es_exporter.monitoring.registry import MetricRegistry

LOGGER = get_logger("scheduler")
log_event = get_event_logger("scheduler")


class SearchClient(Protocol):
    async def execute(self, body: dict[str, Any]) -> Any: ...


@dataclass
class SchedulerState:
    last_run_at: float | None = None
    last_duration_ms: float | None = None
    last_error: str | None = None
    consecutive_failures: int = 0


class QueryScheduler:
    """Polls one query on a fixed delay and publishes what it extracts."""

    def __init__(
        self,
        spec: QuerySpec,
        client: SearchClient,
        registry: MetricRegistry,
        interval_s: float,
    ) -> None:
        self.spec = spec
        self.client = client
        self.registry = registry
        self.interval_s = interval_s
        self.state = SchedulerState()

    def _fail(self, exc: BaseException) -> None:
        self.state.last_error = f"{type(exc).__name__}: {exc}"
        self.state.consecutive_failures += 1
        record_error(self.spec.name, exc)
        LOGGER.error("query %s failed: %s", self.spec.name, self.state.last_error)

    async def run_once(self) -> int:
        """Run a single cycle. Returns the number of observations published."""
        self.state.last_run_at = time.time()
        start = time.perf_counter()
        try:
            response = await self.client.execute(self.spec.body)
        except ExporterError as exc:
            self._fail(exc)
            return 0
        duration_ms = (time.perf_counter() - start) * 1000
        self.state.last_duration_ms = duration_ms
        record_execution(self.spec.name, duration_ms, total_hits(response))

        published = 0
        try:
            for observation in extract(response, self.spec):
                self.registry.observe(
                    observation.metric_name,
                    observation.query_name,
                    observation.label_names,
                    observation.label_values,
                    observation.value,
                )
                published += 1
        except ExporterError as exc:
            self._fail(exc)
            return published
        self.state.last_error = None
        self.state.consecutive_failures = 0
        record_success(self.spec.name)
        log_event(
            "cycle",
            query=self.spec.name,
            duration_ms=round(duration_ms, 1),
            observations=published,
        )
        return published

    async def run_guarded(self) -> int:
        """Like run_once, but failures never escape this query."""
        try:
            return await self.run_once()
        except Exception as exc:
            LOGGER.exception("query %s: unexpected failure", self.spec.name)
            self._fail(exc)
            return 0

    async def run(self, stop_event: asyncio.Event) -> None:
        log_event("start", query=self.spec.name, interval_s=self.interval_s)
        while not stop_event.is_set():
            await self.run_guarded()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_s)
            except asyncio.TimeoutError:
                pass
        log_event("stop", query=self.spec.name)


def build_schedulers(
    config: ExporterConfig, client: SearchClient, registry: MetricRegistry
) -> list[QueryScheduler]:
    """One scheduler per query whose metric schema could be registered."""
    schedulers: list[QueryScheduler] = []
    for spec in config.queries:
        try:
            registry.register(
                spec.metric_name, spec.label_names, f"Metric for query {spec.name}"
            )
        except SchemaConflict as exc:
            LOGGER.error("query %s disabled: %s", spec.name, exc)
            continue
        schedulers.append(
            QueryScheduler(spec, client, registry, config.interval_for(spec))
        )
    return schedulers


async def run_schedulers(
    config: ExporterConfig,
    client: SearchClient,
    registry: MetricRegistry,
    stop_event: asyncio.Event,
) -> None:
    schedulers = build_schedulers(config, client, registry)
    tasks = [
        asyncio.create_task(scheduler.run(stop_event), name=f"query:{scheduler.spec.name}")
        for scheduler in schedulers
    ]
    if not tasks:
        LOGGER.warning("no queries to schedule, serving metrics until shutdown")
        await stop_event.wait()
        return
    await asyncio.gather(*tasks)


async def run_all_once(
    config: ExporterConfig, client: SearchClient, registry: MetricRegistry
) -> dict[str, int]:
    schedulers = build_schedulers(config, client, registry)
    counts = await asyncio.gather(
        *(scheduler.run_guarded() for scheduler in schedulers)
    )
    return {
        scheduler.spec.name: count for scheduler, count in zip(schedulers, counts)
    }
