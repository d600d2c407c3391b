"""
Services package.
Business logic: validation, sync, aggregation, mutations, identity and
generative-text helpers.
"""
from strain_tracker.services.retry_client import RetryClient, RequestSpec, RemoteCallError
from strain_tracker.services.generative import GenerativeTextService
from strain_tracker.services.validation import validate_review, ValidationResult
from strain_tracker.services.sync_store import SyncStore, SubscriptionState
from strain_tracker.services.aggregation import derive_views, category_breakdown
from strain_tracker.services.identity import Identity, IdentityProvider, AuthClient
from strain_tracker.services.mutations import MutationCoordinator
from strain_tracker.services.session import ClientSession, SessionManager

__all__ = [
    "RetryClient",
    "RequestSpec",
    "RemoteCallError",
    "GenerativeTextService",
    "validate_review",
    "ValidationResult",
    "SyncStore",
    "SubscriptionState",
    "derive_views",
    "category_breakdown",
    "Identity",
    "IdentityProvider",
    "AuthClient",
    "MutationCoordinator",
    "ClientSession",
    "SessionManager",
]
