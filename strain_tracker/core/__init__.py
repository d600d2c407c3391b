"""
Core utilities package.
Exports configuration, logging, middleware, and exceptions.
"""
from strain_tracker.core.config import settings, Settings
from strain_tracker.core.logging import logger, log_error
from strain_tracker.core.middleware import RequestIdMiddleware, get_request_id
from strain_tracker.core.exceptions import (
    AppException,
    InvalidArgumentException,
    ReviewValidationException,
    NotFoundException,
    ConflictException,
    OperationInProgressException,
    UnauthorizedException,
    WeakPasswordException,
    EmailInUseException,
    SignInFailedException,
    StoreUnavailableException,
    ConfigurationException,
)

__all__ = [
    "settings",
    "Settings",
    "logger",
    "log_error",
    "RequestIdMiddleware",
    "get_request_id",
    "AppException",
    "InvalidArgumentException",
    "ReviewValidationException",
    "NotFoundException",
    "ConflictException",
    "OperationInProgressException",
    "UnauthorizedException",
    "WeakPasswordException",
    "EmailInUseException",
    "SignInFailedException",
    "StoreUnavailableException",
    "ConfigurationException",
]
