"""
Client sessions: the server-side state of one signed-in client.

A session bundles the auth client, the sync store that follows it, a
clipboard, and single-flight guards. Sessions are addressed by an opaque
bearer token and are reclaimed when idle or when the registry is full.
"""
import secrets
import time
from contextlib import asynccontextmanager
from datetime import date
from typing import Callable, Dict, Optional, Set

from strain_tracker.core.config import settings
from strain_tracker.core.exceptions import (
    InvalidArgumentException,
    OperationInProgressException,
    StoreUnavailableException,
    UnauthorizedException,
)
from strain_tracker.core.logging import logger
from strain_tracker.db.document_store import DocumentStore, SERVER_TIMESTAMP
from strain_tracker.db.paths import CollectionPaths
from strain_tracker.schemas.auth import SignUpRequest, UserProfile
from strain_tracker.services.identity import AuthClient, Identity, IdentityProvider
from strain_tracker.services.sharing import Clipboard
from strain_tracker.services.sync_store import SyncStore

AGE_GATE_MESSAGE = "You must be 21 years or older to use this application."


def is_old_enough(dob: date, minimum_age: int, today: Optional[date] = None) -> bool:
    today = today or date.today()
    try:
        cutoff = today.replace(year=today.year - minimum_age)
    except ValueError:
        # Feb 29 with a non-leap cutoff year
        cutoff = today.replace(year=today.year - minimum_age, day=28)
    return dob <= cutoff


class ClientSession:
    """
    State owned by one client.

    ``connections`` counts open live-view sockets; a session with an open
    socket or a request in flight is never reclaimed as idle.
    """

    def __init__(
        self,
        token: str,
        store: DocumentStore,
        paths: CollectionPaths,
        provider: IdentityProvider,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.token = token
        self.auth = AuthClient(provider)
        self.sync = SyncStore(store, paths)
        self.clipboard = Clipboard()
        self.closed = False
        self.connections = 0
        self._store = store
        self._paths = paths
        self._clock = clock
        self.last_seen = clock()
        self._in_flight: Set[str] = set()
        self.auth.on_identity_changed(self.sync.on_identity_changed)

    @property
    def identity(self) -> Optional[Identity]:
        return self.auth.current

    @property
    def busy(self) -> bool:
        return bool(self._in_flight) or self.connections > 0

    def touch(self) -> None:
        self.last_seen = self._clock()

    def require_identity(self) -> Identity:
        if self.auth.current is None:
            raise UnauthorizedException("Sign in required")
        return self.auth.current

    @asynccontextmanager
    async def single_flight(self, operation: str):
        """Reject a second ``operation`` while one is still running."""
        if operation in self._in_flight:
            raise OperationInProgressException(operation)
        self._in_flight.add(operation)
        try:
            yield
        finally:
            self._in_flight.discard(operation)

    def in_flight(self, operation: str) -> bool:
        return operation in self._in_flight

    async def sign_up(self, request: SignUpRequest) -> Identity:
        """
        Age gate, account creation, then the profile document. A profile
        write failure leaves the account in place.
        """
        if not is_old_enough(request.dob, settings.MINIMUM_AGE_YEARS):
            raise InvalidArgumentException(AGE_GATE_MESSAGE, {"field": "dob"})

        identity = await self.auth.sign_up(request.email, request.password)
        try:
            await self._store.set_document(
                self._paths.profile_collection(identity.uid),
                CollectionPaths.PROFILE_DOC_ID,
                {
                    "name": request.name,
                    "state": request.state,
                    "dob": request.dob.isoformat(),
                    "email": request.email,
                    "createdAt": SERVER_TIMESTAMP,
                },
            )
        except Exception as e:
            logger.error(
                f"Failed to write profile: {str(e)}",
                extra={"uid": identity.uid},
                exc_info=True,
            )
            raise StoreUnavailableException("Sign up failed. Please check your email and password.")
        return identity

    async def load_profile(self) -> UserProfile:
        identity = self.require_identity()
        document = await self._store.get_document(
            self._paths.profile_collection(identity.uid), CollectionPaths.PROFILE_DOC_ID
        )
        if document is None:
            return UserProfile(name="User", state="N/A")
        return UserProfile.model_validate(document.data)

    async def sign_out(self) -> None:
        await self.auth.sign_out()
        self.clipboard = Clipboard()

    async def close(self) -> None:
        self.closed = True
        await self.sync.close()


class SessionManager:
    """
    Token -> ClientSession registry.

    A session not used for ``idle_ttl`` seconds stops resolving and is closed
    on the next ``create``. At ``max_sessions`` the least recently used
    session is closed to make room.
    """

    def __init__(
        self,
        store: DocumentStore,
        paths: CollectionPaths,
        provider: IdentityProvider,
        idle_ttl: float = None,
        max_sessions: int = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store = store
        self._paths = paths
        self.provider = provider
        self.idle_ttl = settings.SESSION_IDLE_TTL_SECONDS if idle_ttl is None else idle_ttl
        self.max_sessions = max_sessions or settings.MAX_SESSIONS
        self._clock = clock
        self._sessions: Dict[str, ClientSession] = {}

    def _expired(self, session: ClientSession) -> bool:
        return not session.busy and self._clock() - session.last_seen >= self.idle_ttl

    async def create(self) -> ClientSession:
        await self.evict_idle()
        while len(self._sessions) >= self.max_sessions:
            candidates = [s for s in self._sessions.values() if not s.busy] or list(
                self._sessions.values()
            )
            oldest = min(candidates, key=lambda s: s.last_seen)
            logger.info(
                "Session limit reached, closing least recently used session",
                extra={"max_sessions": self.max_sessions},
            )
            await self.end(oldest.token)

        token = secrets.token_urlsafe(32)
        session = ClientSession(token, self._store, self._paths, self.provider, clock=self._clock)
        self._sessions[token] = session
        return session

    def get(self, token: Optional[str]) -> Optional[ClientSession]:
        if not token:
            return None
        session = self._sessions.get(token)
        if session is None or self._expired(session):
            return None
        session.touch()
        return session

    async def evict_idle(self) -> int:
        """Close every idle session; returns how many were closed."""
        expired = [token for token, session in self._sessions.items() if self._expired(session)]
        for token in expired:
            await self.end(token)
        if expired:
            logger.info("Closed idle sessions", extra={"count": len(expired)})
        return len(expired)

    async def end(self, token: str) -> None:
        session = self._sessions.pop(token, None)
        if session is not None:
            await session.close()

    async def close_all(self) -> None:
        for token in list(self._sessions):
            await self.end(token)

    def __len__(self):
        return len(self._sessions)
