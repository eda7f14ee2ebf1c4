"""Node directory adapters.

The directory is an external collaborator: a plain ``node id -> public key``
registry. :class:`InMemoryDirectory` backs the registry service and the tests;
:class:`~shallot.directory.client.HttpDirectoryClient` talks to a remote one.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from shallot.directory.interfaces import NodeDirectory, NodeRecord


@dataclass
class InMemoryDirectory:
    records: dict[int, NodeRecord] = field(default_factory=dict)

    async def register(self, node_id: int, public_key: str) -> None:
        # Upsert; re-registration replaces the key but keeps the listing order.
        self.records[node_id] = NodeRecord(node_id=node_id, public_key=public_key)

    async def list_nodes(self) -> list[NodeRecord]:
        return list(self.records.values())

    def __len__(self) -> int:
        return len(self.records)


__all__ = ["InMemoryDirectory", "NodeDirectory", "NodeRecord"]
