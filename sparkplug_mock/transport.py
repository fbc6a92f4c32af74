# SPDX-License-Identifier: Apache-2.0
"""Shared MQTT client used by every simulated edge node."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from asyncio_mqtt import Client, MqttError

from .config import SimulatorConfig
from .node import TOPIC_PREFIX

log = logging.getLogger(__name__)


class MQTTTransport:
    """Owns the single broker connection.

    Publishes from several node tasks share the client; asyncio-mqtt
    serialises them on the event loop.
    """

    def __init__(self, config: SimulatorConfig):
        self.config = config
        self._client: Optional[Client] = None
        self._listener: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        host, port = self.config.broker_address()
        client = Client(
            hostname=host,
            port=port,
            username=self.config.username,
            password=self.config.password,
            client_id=self.config.client_id,
            keepalive=self.config.keepalive_s,
        )
        await client.connect()
        self._client = client
        log.info("connected to MQTT broker %s:%s as %s", host, port, self.config.client_id)
        if self.config.log_incoming:
            self._listener = asyncio.create_task(self._log_incoming(client), name="mqtt-incoming")

    async def publish(self, topic: str, payload: bytes, *, qos: int = 0, retain: bool = False) -> None:
        if self._client is None:
            raise MqttError("transport is not connected")
        await self._client.publish(topic, payload, qos=qos, retain=retain)

    async def close(self) -> None:
        if self._listener:
            self._listener.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._listener
            self._listener = None
        if self._client:
            try:
                await self._client.disconnect()
            except MqttError:
                log.warning("MQTT disconnect did not complete cleanly", exc_info=True)
            self._client = None

    async def _log_incoming(self, client: Client) -> None:
        # Commands are only logged; the simulator never answers them.
        topics = [f"{TOPIC_PREFIX}/{self.config.namespace}/{kind}/#" for kind in ("NCMD", "DCMD")]
        try:
            async with client.unfiltered_messages() as messages:
                await client.subscribe([(topic, 0) for topic in topics])
                log.info("logging incoming messages on %s", ", ".join(topics))
                async for message in messages:
                    log.info("TOPIC: %s MSG: %d bytes", message.topic, len(message.payload))
        except MqttError:
            log.exception("incoming message listener stopped")
