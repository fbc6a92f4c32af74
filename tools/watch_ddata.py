#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""Subscribe to simulator DDATA traffic and print decoded payloads."""
from __future__ import annotations

import argparse
import asyncio

from asyncio_mqtt import Client
from google.protobuf import json_format

from sparkplug_mock.encoding import EncodingMode, decode_payload
from sparkplug_mock.node import DEVICE_DATA, TOPIC_PREFIX


def describe(payload) -> str:
    names = ", ".join(metric.name for metric in payload.metrics)
    return f"seq={payload.seq} ts={payload.timestamp} metrics=[{names}]"


async def watch(client: Client, topic: str, mode: EncodingMode, verbose: bool) -> None:
    async with client.unfiltered_messages() as messages:
        await client.subscribe(topic)
        async for message in messages:
            try:
                payload = decode_payload(message.payload, mode)
            except ValueError as exc:
                print(f"{message.topic}: undecodable payload ({exc})")
                continue
            print(f"{message.topic}: {describe(payload)}")
            if verbose:
                print(json_format.MessageToJson(payload, indent=2))


async def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("broker")
    ap.add_argument("--namespace", default="MyGroupId")
    ap.add_argument("--port", type=int, default=1883)
    ap.add_argument("--username")
    ap.add_argument("--password")
    ap.add_argument("--readable", action="store_true", help="traffic was generated with --debug")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    topic = f"{TOPIC_PREFIX}/{args.namespace}/{DEVICE_DATA}/#"
    mode = EncodingMode.READABLE if args.readable else EncodingMode.COMPACT
    async with Client(hostname=args.broker, port=args.port, username=args.username, password=args.password) as client:
        await watch(client, topic, mode, args.verbose)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
