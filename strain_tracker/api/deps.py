"""
API dependencies for dependency injection.
"""
from typing import Optional
from fastapi import Depends, Header, Request

from strain_tracker.core.exceptions import ConfigurationException, UnauthorizedException
from strain_tracker.services.identity import Identity
from strain_tracker.services.runtime import Runtime
from strain_tracker.services.session import ClientSession


def get_runtime(request: Request) -> Runtime:
    """
    The service graph built at startup.

    Raises:
        ConfigurationException: startup could not build the runtime
    """
    config_error = getattr(request.app.state, "config_error", None)
    if config_error is not None:
        raise config_error
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise ConfigurationException()
    return runtime


def bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Token from an ``Authorization: Bearer <token>`` header, if any."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_optional_session(
    token: Optional[str] = Depends(bearer_token),
    runtime: Runtime = Depends(get_runtime),
) -> Optional[ClientSession]:
    return runtime.sessions.get(token)


async def get_session(
    session: Optional[ClientSession] = Depends(get_optional_session),
) -> ClientSession:
    """
    Session addressed by the bearer token.

    Raises:
        UnauthorizedException: missing or unknown token
    """
    if session is None:
        raise UnauthorizedException("Missing or invalid session token")
    return session


async def get_identity(session: ClientSession = Depends(get_session)) -> Identity:
    return session.require_identity()
