"""Shared fixtures for the strain tracker test suite."""

import os

# Must be set before strain_tracker.core.config builds its settings
os.environ["DOCUMENT_STORE_BACKEND"] = "memory"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_ID", "test-app")

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from strain_tracker.db.document_store import MemoryDocumentStore
from strain_tracker.db.paths import CollectionPaths
from strain_tracker.schemas.review import ReviewInput
from strain_tracker.services.generative import GenerativeTextService
from strain_tracker.services.identity import Identity
from strain_tracker.services.mutations import MutationCoordinator
from strain_tracker.services.retry_client import RetryClient
from strain_tracker.services.sync_store import SyncStore

BASE_TIME = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """A fixed timestamp ``minutes`` after BASE_TIME."""
    return BASE_TIME + timedelta(minutes=minutes)


def gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class RecordingSleep:
    """Stands in for asyncio.sleep; remembers the requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def paths():
    return CollectionPaths("test-app")


@pytest.fixture
def identity():
    return Identity(uid="user-1", email="user@example.com")


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def make_generative(sleep):
    """Factory: GenerativeTextService whose HTTP calls go to ``handler``."""

    def _make(handler):
        return GenerativeTextService(
            RetryClient(transport=httpx.MockTransport(handler), sleep=sleep)
        )

    return _make


@pytest.fixture
def generative(make_generative):
    return make_generative(lambda request: httpx.Response(200, json=gemini_reply("Calm, happy.")))


@pytest.fixture
def coordinator(store, paths, generative):
    return MutationCoordinator(store, paths, generative)


@pytest.fixture
def sync(store, paths):
    return SyncStore(store, paths)


@pytest.fixture
def make_form():
    """Factory for ReviewInput with sensible defaults; kwargs use camelCase aliases."""

    def _make(**overrides):
        data = {
            "strain": "Blue Dream",
            "rating": 5,
            "type": "Sativa",
            "productType": "Flower",
            "terpenes": ["Limonene", "Myrcene"],
            "cost": "45.50",
            "potency": "THC 21%",
            "flavor": "Berry",
            "brand": "Cookies",
            "location": "Trulieve Miami",
            "effects": "Uplifted and creative",
        }
        data.update(overrides)
        return ReviewInput.model_validate(data)

    return _make
