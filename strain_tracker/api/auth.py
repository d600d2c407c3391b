"""
Authentication API endpoints.

Each successful sign-in binds an identity to a session. A request that
already carries a valid bearer token reuses that session, so signing in as a
different user swaps the session's subscriptions to the new identity.
"""
from typing import Optional
from fastapi import APIRouter, Depends

from strain_tracker.api.deps import get_optional_session, get_runtime, get_session
from strain_tracker.core.exceptions import AppException, SignInFailedException
from strain_tracker.core.logging import logger
from strain_tracker.core.middleware import get_request_id
from strain_tracker.schemas.auth import (
    CustomTokenRequest,
    MeResponse,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
)
from strain_tracker.schemas.review import OkResponse
from strain_tracker.services.runtime import Runtime
from strain_tracker.services.session import ClientSession

SIGN_UP_FAILED_MESSAGE = "Sign up failed. Please check your email and password."


router = APIRouter(prefix="/api/auth", tags=["auth"])


async def _run_sign_in(runtime: Runtime, session: Optional[ClientSession], operation: str, action):
    """
    Run ``action(session)`` on the caller's session (or a fresh one) under
    the single-flight guard. A fresh session is discarded if it fails.
    """
    created = session is None
    if created:
        session = await runtime.sessions.create()

    try:
        async with session.single_flight(operation):
            identity = await action(session)
    except Exception as e:
        if created:
            await runtime.sessions.end(session.token)
        if isinstance(e, AppException):
            raise
        logger.error(
            f"{operation} failed: {str(e)}",
            extra={"request_id": get_request_id()},
            exc_info=True,
        )
        if operation == "sign_up":
            raise SignInFailedException(SIGN_UP_FAILED_MESSAGE)
        raise SignInFailedException()

    logger.info(
        "Session signed in",
        extra={
            "request_id": get_request_id(),
            "operation": operation,
            "uid": identity.uid,
        },
    )
    return SessionResponse(token=session.token, user_id=identity.uid, anonymous=identity.anonymous)


@router.post("/signup", response_model=SessionResponse, status_code=201)
async def sign_up(
    request: SignUpRequest,
    runtime: Runtime = Depends(get_runtime),
    session: Optional[ClientSession] = Depends(get_optional_session),
):
    """
    Create an account and its profile, then sign in.

    Raises:
        400: Password too weak
        409: Email already registered, or a sign-up already in progress
        422: Under 21
    """
    return await _run_sign_in(runtime, session, "sign_up", lambda s: s.sign_up(request))


@router.post("/signin", response_model=SessionResponse)
async def sign_in(
    request: SignInRequest,
    runtime: Runtime = Depends(get_runtime),
    session: Optional[ClientSession] = Depends(get_optional_session),
):
    """
    Email/password sign-in.

    Raises:
        401: Unknown email or wrong password
        409: A sign-in already in progress on this session
    """
    return await _run_sign_in(
        runtime, session, "sign_in", lambda s: s.auth.sign_in(request.email, request.password)
    )


@router.post("/anonymous", response_model=SessionResponse)
async def sign_in_anonymously(
    runtime: Runtime = Depends(get_runtime),
    session: Optional[ClientSession] = Depends(get_optional_session),
):
    """Bootstrap identity without credentials."""
    return await _run_sign_in(
        runtime, session, "sign_in", lambda s: s.auth.sign_in_anonymously()
    )


@router.post("/token", response_model=SessionResponse)
async def sign_in_with_custom_token(
    request: CustomTokenRequest,
    runtime: Runtime = Depends(get_runtime),
    session: Optional[ClientSession] = Depends(get_optional_session),
):
    """
    Sign in with a server-issued custom token.

    Raises:
        401: Token signature does not verify
    """
    return await _run_sign_in(
        runtime, session, "sign_in", lambda s: s.auth.sign_in_with_custom_token(request.token)
    )


@router.post("/signout", response_model=OkResponse)
async def sign_out(
    runtime: Runtime = Depends(get_runtime),
    session: ClientSession = Depends(get_session),
):
    """End the session; its subscriptions are torn down and local state cleared."""
    uid = session.identity.uid if session.identity else None
    await session.sign_out()
    await runtime.sessions.end(session.token)
    logger.info("Session signed out", extra={"request_id": get_request_id(), "uid": uid})
    return OkResponse()


@router.get("/me", response_model=MeResponse)
async def me(session: ClientSession = Depends(get_session)):
    """Current identity and profile."""
    identity = session.require_identity()
    profile = await session.load_profile()
    return MeResponse(user_id=identity.uid, anonymous=identity.anonymous, profile=profile)
