"""Message delivery between nodes.

Every node exposes one inbound operation, "accept a message string". Delivery
only acknowledges the hand-off: the receiving node processes the message in
the background, so a sender never learns about failures further down a circuit.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Coroutine, Protocol

from shallot.errors import ForwardingError

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str], Awaitable[Any]]

MAX_RECORDED_FAILURES = 100


class MessageTransport(Protocol):
    """Hands a message to the endpoint listening on ``address``."""

    async def deliver(self, address: int, message: str) -> None: ...


@dataclass
class BackgroundTasks:
    """Holds references to fire-and-forget message processing tasks.

    A failing task is logged and counted, and only the most recent
    ``MAX_RECORDED_FAILURES`` are kept in :attr:`failures`. A failure never
    affects other tasks.
    """

    failures: deque[tuple[str, BaseException]] = field(
        default_factory=lambda: deque(maxlen=MAX_RECORDED_FAILURES)
    )
    failure_count: int = 0
    _tasks: set[asyncio.Task[None]] = field(default_factory=set)

    def spawn(self, coro: Coroutine[Any, Any, Any], *, label: str) -> asyncio.Task[None]:
        task = asyncio.create_task(self._run(coro, label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, coro: Coroutine[Any, Any, Any], label: str) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            logger.info("%s: task cancelled", label)
            raise
        except Exception as e:
            logger.warning("%s: %s: %s", label, type(e).__name__, e)
            self.failure_count += 1
            # drop the frames so a kept error does not pin the message it failed on
            self.failures.append((label, e.with_traceback(None)))

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until no task is running, including tasks spawned meanwhile."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)


@dataclass
class InMemoryNetwork:
    """In-process stand-in for the HTTP message endpoints.

    ``deliver`` fails only when nothing listens on the address, mirroring a
    refused connection; handler errors surface in :attr:`failures`.
    """

    endpoints: dict[int, MessageHandler] = field(default_factory=dict)
    tasks: BackgroundTasks = field(default_factory=BackgroundTasks)

    def attach(self, address: int, handler: MessageHandler) -> None:
        if address in self.endpoints:
            raise ValueError(f"address {address} already in use")
        self.endpoints[address] = handler

    def detach(self, address: int) -> None:
        self.endpoints.pop(address, None)

    async def deliver(self, address: int, message: str) -> None:
        handler = self.endpoints.get(address)
        if handler is None:
            raise ForwardingError(address, "no endpoint listening")
        self.tasks.spawn(handler(message), label=f"endpoint {address}")

    @property
    def failures(self) -> deque[tuple[str, BaseException]]:
        return self.tasks.failures

    async def drain(self) -> None:
        await self.tasks.drain()


__all__ = ["MAX_RECORDED_FAILURES", "BackgroundTasks", "InMemoryNetwork", "MessageHandler", "MessageTransport"]
