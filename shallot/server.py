"""aiohttp applications for the registry, relay and user endpoints.

These are thin wrappers: they parse JSON, call into the node objects and map
exceptions to status codes.
"""

from __future__ import annotations

import logging
from typing import Any

from aiohttp import web

from shallot.client import OnionUser
from shallot.crypto import CryptoError
from shallot.directory import InMemoryDirectory
from shallot.errors import InsufficientNodesError, OnionError
from shallot.relay import OnionRelay
from shallot.transport import BackgroundTasks

logger = logging.getLogger(__name__)

TASKS_KEY = web.AppKey("tasks", BackgroundTasks)


async def _status(request: web.Request) -> web.Response:
    return web.Response(text="live")


def _result(value: Any) -> web.Response:
    return web.json_response({"result": value})


async def _json_body(request: web.Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as e:
        raise web.HTTPBadRequest(text="body must be JSON") from e
    if not isinstance(body, dict):
        raise web.HTTPBadRequest(text="body must be a JSON object")
    return body


def _require(body: dict[str, Any], name: str, kind: type) -> Any:
    value = body.get(name)
    # bool is an int subclass; reject it for integer fields
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise web.HTTPBadRequest(text=f"{name} must be a {kind.__name__}")
    return value


def create_registry_app(directory: InMemoryDirectory) -> web.Application:
    async def register_node(request: web.Request) -> web.Response:
        body = await _json_body(request)
        node_id = _require(body, "nodeId", int)
        public_key = _require(body, "pubKey", str)
        await directory.register(node_id, public_key)
        logger.info("registry: node %d registered", node_id)
        return web.Response(text="success")

    async def get_node_registry(request: web.Request) -> web.Response:
        nodes = await directory.list_nodes()
        return web.json_response({"nodes": [record.to_dict() for record in nodes]})

    app = web.Application()
    app.router.add_get("/status", _status)
    app.router.add_post("/registerNode", register_node)
    app.router.add_get("/getNodeRegistry", get_node_registry)
    return app


async def _cancel_tasks(app: web.Application) -> None:
    await app[TASKS_KEY].cancel()


def create_relay_app(relay: OnionRelay) -> web.Application:
    """Relay endpoint. ``POST /message`` acknowledges before processing."""

    async def message(request: web.Request) -> web.Response:
        body = await _json_body(request)
        envelope = _require(body, "message", str)
        request.app[TASKS_KEY].spawn(relay.process(envelope), label=f"relay {relay.node_id}")
        return web.Response(text="success")

    async def last_encrypted(request: web.Request) -> web.Response:
        return _result(relay.diagnostics.last_received_encrypted)

    async def last_decrypted(request: web.Request) -> web.Response:
        return _result(relay.diagnostics.last_received_decrypted)

    async def last_destination(request: web.Request) -> web.Response:
        return _result(relay.diagnostics.last_destination)

    app = web.Application()
    app[TASKS_KEY] = BackgroundTasks()
    app.on_cleanup.append(_cancel_tasks)
    app.router.add_get("/status", _status)
    app.router.add_post("/message", message)
    app.router.add_get("/getLastReceivedEncryptedMessage", last_encrypted)
    app.router.add_get("/getLastReceivedDecryptedMessage", last_decrypted)
    app.router.add_get("/getLastMessageDestination", last_destination)
    return app


def create_user_app(user: OnionUser) -> web.Application:
    async def message(request: web.Request) -> web.Response:
        body = await _json_body(request)
        await user.receive(_require(body, "message", str))
        return web.Response(text="success")

    async def send_message(request: web.Request) -> web.Response:
        body = await _json_body(request)
        text = _require(body, "message", str)
        destination_user_id = _require(body, "destinationUserId", int)
        try:
            await user.send_message(text, destination_user_id)
        except InsufficientNodesError as e:
            logger.warning("user %d: %s", user.user_id, e)
            return web.Response(status=400, text="Not enough nodes in the network")
        except (OnionError, CryptoError, ValueError) as e:
            logger.exception("user %d: sending failed", user.user_id)
            return web.Response(status=500, text=f"Error sending message: {e}")
        return web.Response(text="success")

    async def last_sent(request: web.Request) -> web.Response:
        return _result(user.diagnostics.last_sent)

    async def last_received(request: web.Request) -> web.Response:
        return _result(user.diagnostics.last_received)

    async def last_circuit(request: web.Request) -> web.Response:
        return _result(user.diagnostics.last_circuit)

    app = web.Application()
    app.router.add_get("/status", _status)
    app.router.add_post("/message", message)
    app.router.add_post("/sendMessage", send_message)
    app.router.add_get("/getLastSentMessage", last_sent)
    app.router.add_get("/getLastReceivedMessage", last_received)
    app.router.add_get("/getLastCircuit", last_circuit)
    return app


async def start_app(app: web.Application, host: str, port: int) -> web.AppRunner:
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    return runner
