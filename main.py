import argparse
import asyncio
import signal
import sys

from prometheus_client import REGISTRY, generate_latest

from es_exporter.config import ExporterConfig, Settings, load_config
from es_exporter.errors import ConfigError
from es_exporter.monitoring.logging_utils import get_logger
from es_exporter.monitoring.metrics_server import start_metrics_server
from es_exporter.monitoring.registry import MetricRegistry
from es_exporter.scheduler import run_all_once, run_schedulers
from es_exporter.search.client import ElasticsearchClient

LOGGER = get_logger("exporter")


async def serve(config: ExporterConfig, client: ElasticsearchClient) -> None:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)
    async with client:
        await run_schedulers(config, client, MetricRegistry(REGISTRY), stop_event)


async def run_once(config: ExporterConfig, client: ElasticsearchClient) -> None:
    async with client:
        await run_all_once(config, client, MetricRegistry(REGISTRY))


def main() -> None:
    parser = argparse.ArgumentParser(description="Elasticsearch query exporter")
    parser.add_argument(
        "--config",
        default=Settings.config_path,
        help="Path to the JSON configuration file.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Poll queries and serve /metrics")
    sub.add_parser("check-config", help="Validate the configuration and exit")
    sub.add_parser("once", help="Run every query once and print the metrics")

    args = parser.parse_args()

    try:
        config = load_config(args.config)
        client = ElasticsearchClient.from_config(config)
    except ConfigError as exc:
        LOGGER.error("startup failed: %s", exc)
        sys.exit(1)

    if args.command == "check-config":
        for spec in config.queries:
            print(
                f"{spec.name}: type={spec.type.value} metric={spec.metric_name} "
                f"labels={','.join(spec.label_names) or '-'} "
                f"interval={config.interval_for(spec):g}s"
            )
        return
    if args.command == "once":
        asyncio.run(run_once(config, client))
        sys.stdout.write(generate_latest(REGISTRY).decode())
        return
    if args.command == "run":
        start_metrics_server(config.prometheus_port, REGISTRY)
        LOGGER.info("exporter started with %d queries", len(config.queries))
        asyncio.run(serve(config, client))
        return


if __name__ == "__main__":
    main()
