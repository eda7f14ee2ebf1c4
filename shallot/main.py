"""Run a registry, relays and users over HTTP in one process."""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from aiohttp import web

from shallot.client import OnionUser
from shallot.config import Config
from shallot.directory import InMemoryDirectory
from shallot.directory.client import HttpDirectoryClient
from shallot.relay import OnionRelay
from shallot.server import create_registry_app, create_relay_app, create_user_app, start_app
from shallot.transport.http import HttpTransport

logger = logging.getLogger("shallot")


@dataclass
class Network:
    """Handles to everything :func:`launch_network` started."""

    config: Config
    registry: InMemoryDirectory
    relays: List[OnionRelay] = field(default_factory=list)
    users: List[OnionUser] = field(default_factory=list)
    runners: List[web.AppRunner] = field(default_factory=list)

    async def close(self) -> None:
        for runner in reversed(self.runners):
            await runner.cleanup()
        self.runners.clear()


async def launch_network(relay_count: int, user_count: int, config: Optional[Config] = None) -> Network:
    """
    Start the registry, then ``relay_count`` relays, then ``user_count`` users.

    Relays register their public keys with the registry over HTTP before this
    returns.
    """
    config = config or Config()
    errors = config.validate()
    if errors:
        raise ValueError("invalid configuration: " + "; ".join(errors))

    host = config.network.host
    network = Network(config=config, registry=InMemoryDirectory())
    try:
        network.runners.append(
            await start_app(create_registry_app(network.registry), host, config.network.registry_port)
        )
        logger.info("registry listening on port %d", config.network.registry_port)

        directory = HttpDirectoryClient(config.registry_url, timeout=config.network.forward_timeout)
        transport = HttpTransport(host=host, timeout=config.network.forward_timeout)

        for node_id in range(relay_count):
            relay = OnionRelay(node_id, transport, config)
            network.runners.append(await start_app(create_relay_app(relay), host, relay.address))
            await relay.register(directory)
            network.relays.append(relay)
            logger.info("relay %d listening on port %d", node_id, relay.address)

        for user_id in range(user_count):
            user = OnionUser(user_id, directory, transport, config)
            network.runners.append(await start_app(create_user_app(user), host, user.address))
            network.users.append(user)
            logger.info("user %d listening on port %d", user_id, user.address)
    except BaseException:
        await network.close()
        raise
    return network


async def _serve(relay_count: int, user_count: int, config: Config) -> None:
    network = await launch_network(relay_count, user_count, config)
    try:
        await asyncio.Event().wait()
    finally:
        await network.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shallot", description=__doc__)
    parser.add_argument("--relays", type=int, default=10, help="number of relays (default: 10)")
    parser.add_argument("--users", type=int, default=2, help="number of users (default: 2)")
    parser.add_argument("--log-level", default="INFO", help="logging level (default: INFO)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    config = Config.from_environment()
    try:
        asyncio.run(_serve(args.relays, args.users, config))
    except KeyboardInterrupt:
        logger.info("shutting down")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
