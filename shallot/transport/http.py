"""aiohttp client side of the ``POST /message`` endpoint."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import aiohttp

from shallot.errors import ForwardingError


@dataclass
class HttpTransport:
    host: str = "localhost"
    timeout: Optional[float] = None

    def url_for(self, address: int) -> str:
        return f"http://{self.host}:{address}/message"

    async def deliver(self, address: int, message: str) -> None:
        """POST ``{"message": message}`` once. No retry.

        Raises:
            ForwardingError: connection failure, timeout or non-2xx status.
        """
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as s:
                async with s.post(self.url_for(address), json={"message": message}) as r:
                    if r.status >= 400:
                        raise ForwardingError(address, f"HTTP {r.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ForwardingError(address, str(e) or type(e).__name__) from e
