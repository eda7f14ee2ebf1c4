from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol


@dataclass(frozen=True)
class NodeRecord:
    """A relay's directory entry: its id and exported public key."""

    node_id: int
    public_key: str

    def to_dict(self) -> dict[str, Any]:
        return {"nodeId": self.node_id, "pubKey": self.public_key}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NodeRecord":
        return cls(node_id=int(data["nodeId"]), public_key=str(data["pubKey"]))


class NodeDirectory(Protocol):
    """Registry of relays and their public keys.

    Relays register once at startup; senders take a snapshot per message.
    """

    async def register(self, node_id: int, public_key: str) -> None: ...

    async def list_nodes(self) -> list[NodeRecord]: ...
