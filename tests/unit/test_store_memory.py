"""
Tests for docmigrate.store.memory module.
"""

import pytest

from docmigrate.exceptions import StoreError
from docmigrate.store.memory import InMemoryDocumentStore


class TestInMemoryDocumentStore:
    """Test InMemoryDocumentStore behaviour."""

    @pytest.mark.asyncio
    async def test_unset_field(self, memory_store):
        await memory_store.unset_field("Player", "jinwoo")

        documents = memory_store.find_all("Player")
        assert all("jinwoo" not in d for d in documents)
        assert documents[0]["name"] == "alice"

    @pytest.mark.asyncio
    async def test_unset_field_on_missing_collection(self, memory_store):
        await memory_store.unset_field("Nowhere", "x")

        assert "Nowhere" not in memory_store.list_collections()

    @pytest.mark.asyncio
    async def test_create_index_is_idempotent(self, memory_store):
        await memory_store.create_index("Player", "level")
        await memory_store.create_index("Player", "level")

        assert memory_store.list_indexes("Player") == ["_id_", "level_1"]

    @pytest.mark.asyncio
    async def test_create_index_creates_collection(self):
        store = InMemoryDocumentStore()

        await store.create_index("Log", "id")

        assert store.list_collections() == ["Log"]
        assert store.list_indexes("Log") == ["_id_", "id_1"]

    @pytest.mark.asyncio
    async def test_descending_index(self):
        store = InMemoryDocumentStore()

        await store.create_index("Log", "at", ascending=False)

        assert store.list_indexes("Log") == ["_id_", "at_-1"]

    @pytest.mark.asyncio
    async def test_drop_index_tolerates_missing(self, memory_store):
        await memory_store.create_index("Player", "name")

        await memory_store.drop_index("Player", "name")
        await memory_store.drop_index("Player", "name")
        await memory_store.drop_index("Nowhere", "name")

        assert memory_store.list_indexes("Player") == ["_id_"]

    @pytest.mark.asyncio
    async def test_delete_all_documents(self, memory_store):
        deleted = await memory_store.delete_all_documents("Player")

        assert deleted == 2
        assert memory_store.find_all("Player") == []
        assert await memory_store.delete_all_documents("Player") == 0
        assert await memory_store.delete_all_documents("Nowhere") == 0

    @pytest.mark.asyncio
    async def test_drop_all_indexes_keeps_id_index(self, memory_store):
        await memory_store.create_index("Player", "name")
        await memory_store.create_index("Player", "level")

        await memory_store.drop_all_indexes("Player")
        await memory_store.drop_all_indexes("Player")

        assert memory_store.list_indexes("Player") == ["_id_"]

    @pytest.mark.asyncio
    async def test_calls_are_recorded(self, memory_store):
        await memory_store.unset_field("Player", "jinwoo")
        await memory_store.create_index("Player", "level")

        assert memory_store.calls == [
            ("unset_field", "Player", "jinwoo"),
            ("create_index", "Player", "level", True),
        ]
        memory_store.clear_calls()
        assert memory_store.calls == []

    @pytest.mark.asyncio
    async def test_closed_store_rejects_calls(self, memory_store):
        await memory_store.close()

        with pytest.raises(StoreError, match="closed"):
            await memory_store.unset_field("Player", "jinwoo")

    @pytest.mark.asyncio
    async def test_async_context_manager_closes(self):
        async with InMemoryDocumentStore() as store:
            await store.create_index("Log", "id")

        with pytest.raises(StoreError):
            await store.drop_all_indexes("Log")

    def test_seeded_documents_are_copied(self):
        store = InMemoryDocumentStore()
        document = {"_id": 1, "tags": ["a"]}

        store.insert_many("Post", [document])
        document["tags"].append("b")

        assert store.find_all("Post") == [{"_id": 1, "tags": ["a"]}]
