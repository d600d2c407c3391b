"""
Builds the long-lived service graph from settings.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from strain_tracker.core.config import DEFAULT_SECRET_KEY, Settings
from strain_tracker.core.exceptions import ConfigurationException
from strain_tracker.core.logging import logger
from strain_tracker.db.database import close_db, create_engine, create_session_factory, init_db
from strain_tracker.db.document_store import DocumentStore, MemoryDocumentStore, SqlDocumentStore
from strain_tracker.db.paths import CollectionPaths
from strain_tracker.services.generative import GenerativeTextService
from strain_tracker.services.identity import IdentityProvider
from strain_tracker.services.mutations import MutationCoordinator
from strain_tracker.services.session import SessionManager


@dataclass
class Runtime:
    store: DocumentStore
    paths: CollectionPaths
    provider: IdentityProvider
    sessions: SessionManager
    generative: GenerativeTextService
    coordinator: MutationCoordinator
    engine: Optional[AsyncEngine] = None


async def build_store(config: Settings):
    """
    Document store for the configured backend.

    Raises:
        ConfigurationException: unknown backend, or SQL without DATABASE_URL
            or with the default SECRET_KEY
    """
    backend = config.DOCUMENT_STORE_BACKEND.lower()
    if backend == "memory":
        return MemoryDocumentStore(), None
    if backend == "sql":
        if not config.DATABASE_URL:
            raise ConfigurationException(details={"missing": "DATABASE_URL"})
        if config.SECRET_KEY == DEFAULT_SECRET_KEY:
            raise ConfigurationException(details={"insecure": "SECRET_KEY"})
        engine = create_engine(config.DATABASE_URL, debug=config.DEBUG)
        await init_db(engine)
        return SqlDocumentStore(create_session_factory(engine)), engine
    raise ConfigurationException(
        f"Unknown document store backend: {config.DOCUMENT_STORE_BACKEND}",
        details={"allowed": ["sql", "memory"]},
    )


async def build_runtime(config: Settings) -> Runtime:
    store, engine = await build_store(config)
    paths = CollectionPaths(config.APP_ID)
    provider = IdentityProvider(store, paths, config.SECRET_KEY, config.MIN_PASSWORD_LENGTH)
    generative = GenerativeTextService()
    runtime = Runtime(
        store=store,
        paths=paths,
        provider=provider,
        sessions=SessionManager(
            store,
            paths,
            provider,
            idle_ttl=config.SESSION_IDLE_TTL_SECONDS,
            max_sessions=config.MAX_SESSIONS,
        ),
        generative=generative,
        coordinator=MutationCoordinator(store, paths, generative),
        engine=engine,
    )
    logger.info(
        "Runtime ready",
        extra={"backend": config.DOCUMENT_STORE_BACKEND, "app_id": config.APP_ID},
    )
    return runtime


async def shutdown_runtime(runtime: Runtime) -> None:
    await runtime.sessions.close_all()
    await runtime.store.close()
    if runtime.engine is not None:
        await close_db(runtime.engine)
