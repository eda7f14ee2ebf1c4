"""HTTP client for a remote registry service."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp

from shallot.directory.interfaces import NodeRecord
from shallot.errors import DirectoryError

logger = logging.getLogger(__name__)


@dataclass
class HttpDirectoryClient:
    """Registry client. Every failure surfaces as :class:`DirectoryError`."""

    base_url: str
    timeout: Optional[float] = None

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.timeout)

    async def register(self, node_id: int, public_key: str) -> None:
        record = NodeRecord(node_id=node_id, public_key=public_key)
        try:
            async with aiohttp.ClientSession(timeout=self._timeout()) as s:
                async with s.post(f"{self.base_url}/registerNode", json=record.to_dict()) as r:
                    r.raise_for_status()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DirectoryError(f"registering node {node_id} failed: {str(e) or type(e).__name__}") from e
        logger.debug("registered node %d with %s", node_id, self.base_url)

    async def list_nodes(self) -> list[NodeRecord]:
        try:
            async with aiohttp.ClientSession(timeout=self._timeout()) as s:
                async with s.get(f"{self.base_url}/getNodeRegistry") as r:
                    r.raise_for_status()
                    body = await r.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DirectoryError(f"fetching node registry failed: {str(e) or type(e).__name__}") from e
        except ValueError as e:
            raise DirectoryError("node registry response is not JSON") from e

        try:
            return [NodeRecord.from_dict(item) for item in body["nodes"]]
        except (KeyError, TypeError, ValueError) as e:
            raise DirectoryError("malformed node registry response") from e
