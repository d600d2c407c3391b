"""Tests for the document store backends and snapshot fan-out."""

from datetime import datetime

import pytest

from strain_tracker.db.database import close_db, create_engine, create_session_factory, init_db
from strain_tracker.db.document_store import (
    SERVER_TIMESTAMP,
    MemoryDocumentStore,
    SqlDocumentStore,
)

COLLECTION = "artifacts/test-app/users/u1/strain_reviews"


class Collector:
    def __init__(self):
        self.snapshots = []
        self.errors = []

    def on_next(self, snapshot):
        self.snapshots.append(snapshot)

    def on_error(self, error):
        self.errors.append(error)

    @property
    def latest_ids(self):
        return sorted(document.id for document in self.snapshots[-1].documents)


class TestMemoryDocumentStore:

    @pytest.mark.asyncio
    async def test_subscribe_delivers_initial_snapshot(self, store):
        doc_id = await store.add_document(COLLECTION, {"strain": "A"})
        collector = Collector()

        await store.subscribe(COLLECTION, collector.on_next, collector.on_error)

        assert len(collector.snapshots) == 1
        assert collector.latest_ids == [doc_id]

    @pytest.mark.asyncio
    async def test_every_write_publishes_full_collection(self, store):
        collector = Collector()
        await store.subscribe(COLLECTION, collector.on_next)

        first = await store.add_document(COLLECTION, {"strain": "A"})
        second = await store.add_document(COLLECTION, {"strain": "B"})
        await store.delete_document(COLLECTION, first)

        assert [len(s) for s in collector.snapshots] == [0, 1, 2, 1]
        assert collector.latest_ids == [second]

    @pytest.mark.asyncio
    async def test_other_collections_not_notified(self, store):
        collector = Collector()
        await store.subscribe(COLLECTION, collector.on_next)

        await store.add_document("elsewhere", {"strain": "A"})

        assert len(collector.snapshots) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_delivery(self, store):
        collector = Collector()
        unsubscribe = await store.subscribe(COLLECTION, collector.on_next)

        unsubscribe()
        unsubscribe()
        await store.add_document(COLLECTION, {"strain": "A"})

        assert len(collector.snapshots) == 1
        assert store.subscriber_count(COLLECTION) == 0

    @pytest.mark.asyncio
    async def test_server_timestamp_resolved(self, store):
        doc_id = await store.add_document(COLLECTION, {"timestamp": SERVER_TIMESTAMP})

        document = await store.get_document(COLLECTION, doc_id)

        assert isinstance(document.data["timestamp"], datetime)

    @pytest.mark.asyncio
    async def test_set_replaces_whole_document(self, store):
        await store.set_document(COLLECTION, "doc", {"strain": "A", "rating": 4})
        await store.set_document(COLLECTION, "doc", {"strain": "B"})

        document = await store.get_document(COLLECTION, "doc")
        assert document.data == {"strain": "B"}

    @pytest.mark.asyncio
    async def test_update_merges_into_existing_document(self, store):
        doc_id = await store.add_document(COLLECTION, {"strain": "A", "rating": 4})

        assert await store.update_document(COLLECTION, doc_id, {"analysis": "Calm."}) is True

        document = await store.get_document(COLLECTION, doc_id)
        assert document.data == {"strain": "A", "rating": 4, "analysis": "Calm."}

    @pytest.mark.asyncio
    async def test_update_never_creates(self, store):
        collector = Collector()
        await store.subscribe(COLLECTION, collector.on_next)

        assert await store.update_document(COLLECTION, "gone", {"analysis": "Calm."}) is False

        assert await store.get_document(COLLECTION, "gone") is None
        assert len(collector.snapshots) == 1
        assert store.write_count == 0

    @pytest.mark.asyncio
    async def test_delete_missing_document(self, store):
        collector = Collector()
        await store.subscribe(COLLECTION, collector.on_next)

        assert await store.delete_document(COLLECTION, "missing") is False
        assert len(collector.snapshots) == 1

    @pytest.mark.asyncio
    async def test_returned_data_is_a_copy(self, store):
        doc_id = await store.add_document(COLLECTION, {"terpenes": ["Pinene"]})

        document = await store.get_document(COLLECTION, doc_id)
        document.data["terpenes"].append("Limonene")

        fresh = await store.get_document(COLLECTION, doc_id)
        assert fresh.data["terpenes"] == ["Pinene"]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self, store):
        collector = Collector()

        def broken(snapshot):
            raise RuntimeError("listener bug")

        await store.subscribe(COLLECTION, broken)
        await store.subscribe(COLLECTION, collector.on_next)
        await store.add_document(COLLECTION, {"strain": "A"})

        assert len(collector.snapshots) == 2

    @pytest.mark.asyncio
    async def test_list_failure_goes_to_error_listener(self):
        store = MemoryDocumentStore()
        collector = Collector()

        async def broken_list(collection):
            raise RuntimeError("permission denied")

        store._list = broken_list
        await store.subscribe(COLLECTION, collector.on_next, collector.on_error)

        assert collector.snapshots == []
        assert len(collector.errors) == 1


class TestSqlDocumentStore:

    @pytest.mark.asyncio
    async def test_round_trip_and_snapshots(self, tmp_path):
        engine = create_engine(f"sqlite+aiosqlite:///{tmp_path}/documents.db")
        try:
            await init_db(engine)
            store = SqlDocumentStore(create_session_factory(engine))
            collector = Collector()
            await store.subscribe(COLLECTION, collector.on_next)

            doc_id = await store.add_document(
                COLLECTION, {"strain": "Blue Dream", "rating": 5, "timestamp": SERVER_TIMESTAMP}
            )
            await store.update_document(COLLECTION, doc_id, {"analysis": "Uplifting."})

            document = await store.get_document(COLLECTION, doc_id)
            assert document.data["strain"] == "Blue Dream"
            assert document.data["analysis"] == "Uplifting."
            assert isinstance(document.data["timestamp"], str)
            assert [len(s) for s in collector.snapshots] == [0, 1, 1]

            assert await store.delete_document(COLLECTION, doc_id) is True
            assert await store.delete_document(COLLECTION, doc_id) is False
            assert await store.get_document(COLLECTION, doc_id) is None
            assert len(collector.snapshots[-1]) == 0

            assert await store.update_document(COLLECTION, doc_id, {"analysis": "Late."}) is False
            assert await store.get_document(COLLECTION, doc_id) is None
        finally:
            await close_db(engine)

    @pytest.mark.asyncio
    async def test_collections_are_isolated(self, tmp_path):
        engine = create_engine(f"sqlite+aiosqlite:///{tmp_path}/documents.db")
        try:
            await init_db(engine)
            store = SqlDocumentStore(create_session_factory(engine))

            await store.add_document(COLLECTION, {"strain": "A"})
            await store.add_document("artifacts/test-app/public/data/popular_strains", {"strain": "B"})

            documents = await store._list(COLLECTION)
            assert [d.data["strain"] for d in documents] == ["A"]
        finally:
            await close_db(engine)
