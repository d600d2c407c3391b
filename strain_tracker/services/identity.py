"""
Identity provider and the per-session auth client.

Accounts live as documents in the accounts collection, keyed by lower-cased
email, with a salted PBKDF2 password hash. Custom tokens are ``uid.signature``
where the signature is an HMAC-SHA256 of the uid under ``SECRET_KEY``.
"""
import asyncio
import hashlib
import hmac
import secrets
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from strain_tracker.core.config import settings
from strain_tracker.core.exceptions import (
    EmailInUseException,
    SignInFailedException,
    WeakPasswordException,
)
from strain_tracker.core.logging import logger
from strain_tracker.db.document_store import DocumentStore, SERVER_TIMESTAMP
from strain_tracker.db.paths import CollectionPaths

PBKDF2_ITERATIONS = 100_000


@dataclass(frozen=True)
class Identity:
    uid: str
    email: Optional[str] = None
    anonymous: bool = False


def hash_password(password: str, salt: bytes) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS).hex()


class IdentityProvider:
    """
    Shared account registry. Stateless apart from the store.
    """

    def __init__(
        self,
        store: DocumentStore,
        paths: CollectionPaths,
        secret_key: str = None,
        min_password_length: int = None,
    ):
        self._store = store
        self._paths = paths
        self._secret_key = (secret_key or settings.SECRET_KEY).encode("utf-8")
        self.min_password_length = min_password_length or settings.MIN_PASSWORD_LENGTH
        # Serializes the exists-check and the insert of create_account
        self._create_lock = asyncio.Lock()

    @staticmethod
    def _account_id(email: str) -> str:
        return email.strip().lower()

    async def create_account(self, email: str, password: str) -> Identity:
        if len(password) < self.min_password_length:
            raise WeakPasswordException(
                f"Password is too weak. Must be at least {self.min_password_length} characters."
            )

        account_id = self._account_id(email)
        async with self._create_lock:
            existing = await self._store.get_document(self._paths.accounts(), account_id)
            if existing is not None:
                raise EmailInUseException()

            uid = uuid.uuid4().hex
            salt = secrets.token_bytes(16)
            await self._store.set_document(
                self._paths.accounts(),
                account_id,
                {
                    "uid": uid,
                    "email": account_id,
                    "salt": salt.hex(),
                    "passwordHash": hash_password(password, salt),
                    "createdAt": SERVER_TIMESTAMP,
                },
            )

        logger.info("Account created", extra={"uid": uid})
        return Identity(uid=uid, email=account_id)

    async def verify_password(self, email: str, password: str) -> Identity:
        account = await self._store.get_document(self._paths.accounts(), self._account_id(email))
        if account is None:
            raise SignInFailedException()

        data = account.data
        expected = data.get("passwordHash", "")
        actual = hash_password(password, bytes.fromhex(data.get("salt", "")))
        if not hmac.compare_digest(expected, actual):
            raise SignInFailedException()
        return Identity(uid=data["uid"], email=data.get("email"))

    @staticmethod
    def anonymous_identity() -> Identity:
        return Identity(uid=uuid.uuid4().hex, anonymous=True)

    def _sign(self, uid: str) -> str:
        return hmac.new(self._secret_key, uid.encode("utf-8"), hashlib.sha256).hexdigest()

    def issue_custom_token(self, uid: str) -> str:
        return f"{uid}.{self._sign(uid)}"

    def verify_custom_token(self, token: str) -> Identity:
        uid, _, signature = token.rpartition(".")
        if not uid or not hmac.compare_digest(signature, self._sign(uid)):
            raise SignInFailedException("Custom token sign-in failed.")
        return Identity(uid=uid)


IdentityListener = Callable[[Optional[Identity]], Awaitable[None]]


class AuthClient:
    """
    Current identity of one session plus change notification.

    Listeners are awaited in registration order after every transition,
    including sign-out (with ``None``).
    """

    def __init__(self, provider: IdentityProvider):
        self._provider = provider
        self._listeners: List[IdentityListener] = []
        self.current: Optional[Identity] = None

    def on_identity_changed(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def _set_identity(self, identity: Optional[Identity]) -> None:
        self.current = identity
        for listener in list(self._listeners):
            await listener(identity)

    async def sign_up(self, email: str, password: str) -> Identity:
        identity = await self._provider.create_account(email, password)
        await self._set_identity(identity)
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        identity = await self._provider.verify_password(email, password)
        await self._set_identity(identity)
        return identity

    async def sign_in_anonymously(self) -> Identity:
        identity = self._provider.anonymous_identity()
        await self._set_identity(identity)
        return identity

    async def sign_in_with_custom_token(self, token: str) -> Identity:
        identity = self._provider.verify_custom_token(token)
        await self._set_identity(identity)
        return identity

    async def sign_out(self) -> None:
        await self._set_identity(None)
