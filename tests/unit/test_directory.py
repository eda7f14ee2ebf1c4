"""Unit tests for shallot.directory module."""

import pytest

from shallot.directory import InMemoryDirectory, NodeRecord


class TestNodeRecord:
    def test_wire_format(self):
        record = NodeRecord(node_id=2, public_key="pk")
        assert record.to_dict() == {"nodeId": 2, "pubKey": "pk"}
        assert NodeRecord.from_dict({"nodeId": "2", "pubKey": "pk"}) == record

    def test_from_dict_missing_field(self):
        with pytest.raises(KeyError):
            NodeRecord.from_dict({"nodeId": 1})


class TestInMemoryDirectory:
    @pytest.mark.asyncio
    async def test_register_and_list(self):
        directory = InMemoryDirectory()
        await directory.register(1, "a")
        await directory.register(0, "b")

        assert await directory.list_nodes() == [NodeRecord(1, "a"), NodeRecord(0, "b")]
        assert len(directory) == 2

    @pytest.mark.asyncio
    async def test_register_is_an_upsert(self):
        directory = InMemoryDirectory()
        await directory.register(1, "old")
        await directory.register(2, "x")
        await directory.register(1, "new")

        assert await directory.list_nodes() == [NodeRecord(1, "new"), NodeRecord(2, "x")]

    @pytest.mark.asyncio
    async def test_list_is_a_snapshot(self):
        directory = InMemoryDirectory()
        await directory.register(1, "a")
        snapshot = await directory.list_nodes()
        await directory.register(2, "b")

        assert snapshot == [NodeRecord(1, "a")]
