# SPDX-License-Identifier: Apache-2.0
"""Async runner for a fleet of simulated edge nodes."""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

import numpy as np
from asyncio_mqtt import MqttError
from prometheus_client import start_http_server

from sparkplug_mock.config import SimulatorConfig, load_config
from sparkplug_mock.errors import ConfigurationError
from sparkplug_mock.node import EdgeNodeSimulator, Transport
from sparkplug_mock.samples import EVENT_SAMPLES, METRIC_SAMPLES, validate_catalog
from sparkplug_mock.transport import MQTTTransport

log = logging.getLogger("sparkplug_mock")


class FleetOrchestrator:
    def __init__(
        self,
        config: SimulatorConfig,
        transport: Optional[Transport] = None,
        *,
        seed: Optional[int] = None,
    ):
        self.config = config
        self.transport: Transport = transport if transport is not None else MQTTTransport(config)
        self.nodes: List[EdgeNodeSimulator] = []
        self._seed = seed
        self._workers: list[asyncio.Task] = []
        self._stop_event = asyncio.Event()

    async def start(self) -> None:
        validate_catalog(METRIC_SAMPLES)
        validate_catalog(EVENT_SAMPLES)
        if self.config.metrics_port is not None:
            try:
                start_http_server(self.config.metrics_port)
            except OSError as exc:
                raise ConfigurationError(f"cannot expose metrics on port {self.config.metrics_port}: {exc}") from exc
        await self.transport.connect()
        # One independent random stream per node.
        seeds = np.random.SeedSequence(self._seed).spawn(self.config.nodes)
        for edge_id, seed in enumerate(seeds, start=1):
            node = EdgeNodeSimulator(edge_id, self.config, self.transport, rng=np.random.default_rng(seed))
            self.nodes.append(node)
            self._workers.append(asyncio.create_task(node.run(self._stop_event), name=f"edge-node-{edge_id}"))
        log.info(
            "simulating %d edge nodes (%s encoding, %d%% metrics)",
            len(self.nodes),
            self.config.encoding.value,
            self.config.metric_percent,
        )

    def request_stop(self) -> None:
        self._stop_event.set()

    async def wait(self) -> None:
        """Block until every node task has exited."""
        await asyncio.gather(*self._workers)

    async def stop(self) -> None:
        self.request_stop()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers.clear()
        await self.transport.close()


async def main_async(config: SimulatorConfig) -> int:
    """Run the fleet until a signal arrives; returns the process exit status."""
    orchestrator = FleetOrchestrator(config)
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, orchestrator.request_stop)
        except NotImplementedError:
            # Windows fallback
            pass

    try:
        try:
            await orchestrator.start()
        except MqttError as exc:
            log.error("cannot connect to %s: %s", config.server, exc)
            return 1
        await orchestrator.wait()
    finally:
        log.info("shutting down")
        await orchestrator.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sparkplug B edge node traffic simulator")
    parser.add_argument("--config", help="YAML file with default settings")
    parser.add_argument(
        "--debug",
        "--readable",
        dest="readable",
        action="store_true",
        default=None,
        help="send indented JSON instead of sparkplugb protobuf messages",
    )
    parser.add_argument("--nodes", type=int, help="number of edge of network nodes to simulate")
    parser.add_argument("--device", help="device name, appended at the end of the topic")
    parser.add_argument("--namespace", help="group id used as part of the topic")
    parser.add_argument("--metric-percent", type=int, help="percent of messages that are metrics; the rest are events")
    parser.add_argument("--server", help="broker the simulator publishes to, e.g. tcp://localhost:1883")
    parser.add_argument("--client-id")
    parser.add_argument("--username")
    parser.add_argument("--password")
    parser.add_argument("--interval", dest="interval_s", type=float, help="seconds between payloads of one node")
    parser.add_argument("--log-incoming", action="store_true", default=None, help="log NCMD/DCMD messages")
    parser.add_argument("--metrics-port", type=int, help="expose Prometheus metrics on this port")
    parser.add_argument("--log-level")
    return parser


def resolve_config(args: argparse.Namespace) -> SimulatorConfig:
    base = load_config(args.config) if args.config else SimulatorConfig()
    overrides = {k: v for k, v in vars(args).items() if k != "config"}
    return base.with_overrides(overrides)


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        config = resolve_config(args)
    except ConfigurationError as exc:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        log.error("invalid configuration: %s", exc)
        sys.exit(2)
    logging.basicConfig(level=config.log_level.upper(), format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    try:
        status = asyncio.run(main_async(config))
    except ConfigurationError as exc:
        log.error("invalid configuration: %s", exc)
        sys.exit(2)
    except KeyboardInterrupt:
        return
    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
