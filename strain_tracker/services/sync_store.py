"""
Live local view of a user's reviews and the shared popular strains.

Each ``CollectionSubscription`` walks ``UNSUBSCRIBED -> SUBSCRIBING -> LIVE``
and replaces its whole materialized list on every snapshot. A snapshot or
subscription error leaves the last good list in place and is only logged.

``SyncStore`` owns the two subscriptions for one session, follows identity
changes (tear down, clear, resubscribe) and keeps the local-only
``analysisLoading`` overlay.
"""
import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from strain_tracker.core.config import settings
from strain_tracker.core.logging import logger
from strain_tracker.db.document_store import (
    CollectionSnapshot,
    DocumentSnapshot,
    DocumentStore,
    Unsubscribe,
)
from strain_tracker.db.paths import CollectionPaths
from strain_tracker.schemas.review import Review, PopularStrainEntry

ChangeListener = Callable[[str], None]


class SubscriptionState(str, Enum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    LIVE = "live"


def coerce_timestamp(value: Any) -> datetime:
    """Stored timestamp as an aware datetime; "now" when missing or unreadable."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc)


def _normalize(model, document: DocumentSnapshot):
    data = dict(document.data)
    data.pop("analysisLoading", None)
    data["id"] = document.id
    data["timestamp"] = coerce_timestamp(data.get("timestamp"))
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(
            "Skipping malformed document",
            extra={"doc_id": document.id, "errors": e.error_count()},
        )
        return None


def materialize_reviews(snapshot: CollectionSnapshot) -> List[Review]:
    """Reviews newest first."""
    reviews = [r for r in (_normalize(Review, d) for d in snapshot.documents) if r is not None]
    reviews.sort(key=lambda r: r.timestamp, reverse=True)
    return reviews


def materialize_popular(snapshot: CollectionSnapshot, limit: int = None) -> List[PopularStrainEntry]:
    """
    Newest first, one entry per strain name (the most recent), at most
    ``limit`` entries.
    """
    if limit is None:
        limit = settings.POPULAR_STRAINS_LIMIT
    entries = [
        e for e in (_normalize(PopularStrainEntry, d) for d in snapshot.documents) if e is not None
    ]
    entries.sort(key=lambda e: e.timestamp, reverse=True)

    seen = set()
    result: List[PopularStrainEntry] = []
    for entry in entries:
        if len(result) >= limit:
            break
        if entry.strain in seen:
            continue
        seen.add(entry.strain)
        result.append(entry)
    return result


class CollectionSubscription:
    """
    One subscribed collection and its latest materialization.
    """

    def __init__(
        self,
        name: str,
        store: DocumentStore,
        materialize: Callable[[CollectionSnapshot], list],
        on_change: ChangeListener,
    ):
        self.name = name
        self.state = SubscriptionState.UNSUBSCRIBED
        self.collection: Optional[str] = None
        self.items: list = []
        self.last_error: Optional[Exception] = None
        self._store = store
        self._materialize = materialize
        self._on_change = on_change
        self._unsubscribe: Optional[Unsubscribe] = None

    async def start(self, collection: str) -> None:
        self.stop()
        self.state = SubscriptionState.SUBSCRIBING
        self.collection = collection
        self._unsubscribe = await self._store.subscribe(
            collection, self._handle_snapshot, self._handle_error
        )

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.state = SubscriptionState.UNSUBSCRIBED
        self.collection = None
        self.items = []
        self.last_error = None

    def _handle_snapshot(self, snapshot: CollectionSnapshot) -> None:
        try:
            items = self._materialize(snapshot)
        except Exception as e:
            self._handle_error(e)
            return
        self.items = items
        self.state = SubscriptionState.LIVE
        self.last_error = None
        self._on_change(self.name)

    def _handle_error(self, error: Exception) -> None:
        self.last_error = error
        logger.error(
            f"Snapshot error on {self.name} subscription: {str(error)}",
            extra={"subscription": self.name, "collection": self.collection},
        )


@dataclass
class _LoadingFlag:
    set_at: float
    baseline: Optional[str]


class SyncStore:
    """
    Per-session materialized state: ``reviews`` (private, newest first) and
    ``popular`` (public, de-duplicated).

    The analysis overlay marks a review as loading until one of: an explicit
    clear, a snapshot in which the review is gone or carries a different
    ``analysis`` than when the flag was set, or the overlay timeout. The
    snapshot always wins over the overlay.
    """

    PRIVATE = "reviews"
    PUBLIC = "popular"

    def __init__(
        self,
        store: DocumentStore,
        paths: CollectionPaths,
        loading_timeout: float = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store = store
        self._paths = paths
        self._loading_timeout = (
            settings.ANALYSIS_LOADING_TIMEOUT_SECONDS if loading_timeout is None else loading_timeout
        )
        self._clock = clock
        self._lock = asyncio.Lock()
        self._listeners: List[ChangeListener] = []
        self._loading: Dict[str, _LoadingFlag] = {}
        self.uid: Optional[str] = None

        self.private = CollectionSubscription(
            self.PRIVATE, store, materialize_reviews, self._on_private_change
        )
        self.public = CollectionSubscription(
            self.PUBLIC, store, materialize_popular, self._notify
        )

    # Identity lifecycle

    async def on_identity_changed(self, identity) -> None:
        """Follow the session's identity; ``None`` means signed out."""
        uid = identity.uid if identity is not None else None
        async with self._lock:
            if uid == self.uid and self.private.state != SubscriptionState.UNSUBSCRIBED:
                return
            self._teardown()
            self.uid = uid
            if uid is None:
                self._notify("cleared")
                return
            logger.info("Subscribing session collections", extra={"uid": uid})
            await self.private.start(self._paths.private_reviews(uid))
            await self.public.start(self._paths.popular_strains())

    async def close(self) -> None:
        async with self._lock:
            self._teardown()
            self.uid = None
        self._notify("closed")

    def _teardown(self) -> None:
        self.private.stop()
        self.public.stop()
        self._loading.clear()

    # Reads

    @property
    def live(self) -> bool:
        return (
            self.private.state == SubscriptionState.LIVE
            and self.public.state == SubscriptionState.LIVE
        )

    @property
    def reviews(self) -> List[Review]:
        self._expire_flags()
        if not self._loading:
            return list(self.private.items)
        return [
            r.model_copy(update={"analysis_loading": True}) if r.id in self._loading else r
            for r in self.private.items
        ]

    @property
    def popular(self) -> List[PopularStrainEntry]:
        return list(self.public.items)

    def find_review(self, review_id: str) -> Optional[Review]:
        for review in self.reviews:
            if review.id == review_id:
                return review
        return None

    # Analysis overlay

    def is_analysis_loading(self, review_id: str) -> bool:
        self._expire_flags()
        return review_id in self._loading

    def mark_analysis_loading(self, review_id: str) -> bool:
        """Set the flag; False if the review is unknown or already loading."""
        review = next((r for r in self.private.items if r.id == review_id), None)
        if review is None or self.is_analysis_loading(review_id):
            return False
        self._loading[review_id] = _LoadingFlag(set_at=self._clock(), baseline=review.analysis)
        self._notify("overlay")
        return True

    def clear_analysis_loading(self, review_id: str) -> None:
        if self._loading.pop(review_id, None) is not None:
            self._notify("overlay")

    def _expire_flags(self) -> None:
        now = self._clock()
        expired = [
            review_id
            for review_id, flag in self._loading.items()
            if now - flag.set_at >= self._loading_timeout
        ]
        for review_id in expired:
            del self._loading[review_id]

    def _on_private_change(self, name: str) -> None:
        if self._loading:
            current = {r.id: r for r in self.private.items}
            for review_id, flag in list(self._loading.items()):
                review = current.get(review_id)
                if review is None or review.analysis != flag.baseline:
                    del self._loading[review_id]
        self._notify(name)

    # Change listeners

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self, kind: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(kind)
            except Exception as e:
                logger.error(f"Sync store listener failed: {str(e)}", exc_info=True)
