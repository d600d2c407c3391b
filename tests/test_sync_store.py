"""Tests for the per-session sync store."""

import pytest

from conftest import at
from strain_tracker.db.document_store import CollectionSnapshot, DocumentSnapshot
from strain_tracker.services.identity import Identity
from strain_tracker.services.sync_store import (
    SubscriptionState,
    SyncStore,
    coerce_timestamp,
    materialize_popular,
    materialize_reviews,
)


def snapshot(*documents):
    return CollectionSnapshot(
        collection="c",
        documents=[DocumentSnapshot(id=doc_id, data=data) for doc_id, data in documents],
    )


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestMaterialize:

    def test_popular_keeps_most_recent_per_strain(self):
        result = materialize_popular(
            snapshot(
                ("a3", {"strain": "A", "timestamp": at(3)}),
                ("b4", {"strain": "B", "timestamp": at(4)}),
                ("a5", {"strain": "A", "timestamp": at(5)}),
            )
        )

        assert [(e.strain, e.id) for e in result] == [("A", "a5"), ("B", "b4")]

    def test_popular_capped(self):
        documents = [(str(i), {"strain": f"S{i}", "timestamp": at(i)}) for i in range(8)]

        result = materialize_popular(snapshot(*documents), limit=5)

        assert [e.strain for e in result] == ["S7", "S6", "S5", "S4", "S3"]

    def test_reviews_newest_first(self):
        result = materialize_reviews(
            snapshot(
                ("old", {"strain": "X", "rating": 3, "timestamp": at(1)}),
                ("new", {"strain": "Y", "rating": 4, "timestamp": at(9).isoformat()}),
            )
        )

        assert [r.id for r in result] == ["new", "old"]

    def test_malformed_document_skipped(self):
        result = materialize_reviews(
            snapshot(
                ("ok", {"strain": "X", "rating": 3, "timestamp": at(1)}),
                ("bad", {"strain": "Y", "rating": "five stars", "timestamp": at(2)}),
            )
        )

        assert [r.id for r in result] == ["ok"]

    def test_missing_timestamp_reads_as_now(self):
        assert coerce_timestamp(None).tzinfo is not None
        assert coerce_timestamp("not a date").tzinfo is not None
        assert coerce_timestamp(at(0)) == at(0)


class TestSyncStoreLifecycle:

    @pytest.mark.asyncio
    async def test_sign_in_subscribes_both_collections(self, store, paths, sync, identity):
        await store.add_document(
            paths.private_reviews(identity.uid), {"strain": "Mine", "rating": 4, "timestamp": at(1)}
        )
        await store.add_document(
            paths.popular_strains(), {"strain": "Shared", "rating": 5, "timestamp": at(1)}
        )

        await sync.on_identity_changed(identity)

        assert sync.live
        assert [r.strain for r in sync.reviews] == ["Mine"]
        assert [p.strain for p in sync.popular] == ["Shared"]
        assert store.subscriber_count(paths.private_reviews(identity.uid)) == 1

    @pytest.mark.asyncio
    async def test_snapshots_replace_lists(self, store, paths, sync, identity):
        await sync.on_identity_changed(identity)
        collection = paths.private_reviews(identity.uid)

        doc_id = await store.add_document(collection, {"strain": "One", "rating": 3, "timestamp": at(1)})
        assert [r.id for r in sync.reviews] == [doc_id]

        await store.delete_document(collection, doc_id)
        assert sync.reviews == []

    @pytest.mark.asyncio
    async def test_identity_change_clears_and_resubscribes(self, store, paths, sync, identity):
        await store.add_document(
            paths.private_reviews(identity.uid), {"strain": "Mine", "rating": 4, "timestamp": at(1)}
        )
        await sync.on_identity_changed(identity)
        other = Identity(uid="user-2")

        await sync.on_identity_changed(other)

        assert sync.reviews == []
        assert sync.uid == "user-2"
        assert store.subscriber_count(paths.private_reviews(identity.uid)) == 0
        assert store.subscriber_count(paths.private_reviews("user-2")) == 1

    @pytest.mark.asyncio
    async def test_sign_out_unsubscribes(self, store, paths, sync, identity):
        await sync.on_identity_changed(identity)

        await sync.on_identity_changed(None)

        assert sync.private.state == SubscriptionState.UNSUBSCRIBED
        assert sync.public.state == SubscriptionState.UNSUBSCRIBED
        assert store.subscriber_count(paths.popular_strains()) == 0

    @pytest.mark.asyncio
    async def test_snapshot_error_keeps_last_good_list(self, store, paths, sync, identity):
        await store.add_document(
            paths.private_reviews(identity.uid), {"strain": "Mine", "rating": 4, "timestamp": at(1)}
        )
        await sync.on_identity_changed(identity)

        async def broken_list(collection):
            raise RuntimeError("backend down")

        store._list = broken_list
        await store.add_document(
            paths.private_reviews(identity.uid), {"strain": "Lost", "rating": 4, "timestamp": at(2)}
        )

        assert [r.strain for r in sync.reviews] == ["Mine"]
        assert isinstance(sync.private.last_error, RuntimeError)
        assert sync.private.state == SubscriptionState.LIVE

    @pytest.mark.asyncio
    async def test_listeners_notified(self, store, paths, sync, identity):
        kinds = []
        remove = sync.add_listener(kinds.append)

        await sync.on_identity_changed(identity)
        remove()
        await store.add_document(paths.popular_strains(), {"strain": "S", "timestamp": at(1)})

        assert kinds == ["reviews", "popular"]


class TestAnalysisOverlay:

    @pytest.mark.asyncio
    async def test_flag_set_and_cleared_by_analysis_write(self, store, paths, sync, identity):
        collection = paths.private_reviews(identity.uid)
        doc_id = await store.add_document(collection, {"strain": "X", "rating": 4, "timestamp": at(1)})
        await sync.on_identity_changed(identity)

        assert sync.mark_analysis_loading(doc_id)
        assert sync.find_review(doc_id).analysis_loading
        assert not sync.mark_analysis_loading(doc_id)

        await store.update_document(collection, doc_id, {"analysis": "Relaxing."})

        review = sync.find_review(doc_id)
        assert review.analysis == "Relaxing."
        assert not review.analysis_loading

    @pytest.mark.asyncio
    async def test_unrelated_snapshot_keeps_flag(self, store, paths, sync, identity):
        collection = paths.private_reviews(identity.uid)
        doc_id = await store.add_document(collection, {"strain": "X", "rating": 4, "timestamp": at(1)})
        await sync.on_identity_changed(identity)
        sync.mark_analysis_loading(doc_id)

        await store.add_document(collection, {"strain": "Y", "rating": 2, "timestamp": at(2)})

        assert sync.is_analysis_loading(doc_id)

    @pytest.mark.asyncio
    async def test_flag_cleared_when_review_disappears(self, store, paths, sync, identity):
        collection = paths.private_reviews(identity.uid)
        doc_id = await store.add_document(collection, {"strain": "X", "rating": 4, "timestamp": at(1)})
        await sync.on_identity_changed(identity)
        sync.mark_analysis_loading(doc_id)

        await store.delete_document(collection, doc_id)

        assert not sync.is_analysis_loading(doc_id)

    @pytest.mark.asyncio
    async def test_flag_times_out(self, store, paths, identity):
        clock = FakeClock()
        sync = SyncStore(store, paths, loading_timeout=120, clock=clock)
        collection = paths.private_reviews(identity.uid)
        doc_id = await store.add_document(collection, {"strain": "X", "rating": 4, "timestamp": at(1)})
        await sync.on_identity_changed(identity)
        sync.mark_analysis_loading(doc_id)

        clock.now = 119
        assert sync.is_analysis_loading(doc_id)
        clock.now = 120
        assert not sync.is_analysis_loading(doc_id)

    @pytest.mark.asyncio
    async def test_unknown_review_cannot_be_flagged(self, sync, identity):
        await sync.on_identity_changed(identity)

        assert not sync.mark_analysis_loading("missing")
