"""
Request authentication

The identity provider issues a JWT whose `sub` claim is the stable external
user id (with optional `email` / `name` claims). Every authenticated request is
mapped to an internal user via get-or-create and wrapped in a RequestContext.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from jose import JWTError, jwt

from core.context import Clock, RequestContext, SystemClock
from core.db import get_db
from core.exceptions import AuthenticationError
from core.logger import get_logger
from core.settings import get_settings

logger = get_logger(__name__)

DEV_USER_HEADER = "x-dev-user"

# Overridable in tests to pin "today"
_clock: Clock = SystemClock()


def set_clock(clock: Clock) -> None:
    global _clock
    _clock = clock


def get_clock() -> Clock:
    return _clock


def decode_identity(token: str) -> Dict[str, Any]:
    """
    Verify a bearer token and return its identity claims

    Raises:
        AuthenticationError: invalid signature, expired token or missing `sub`
    """
    config = get_settings().get_auth_settings()
    if not config["jwt_secret"]:
        raise AuthenticationError("JWT secret is not configured")

    try:
        claims = jwt.decode(
            token, config["jwt_secret"], algorithms=[config["jwt_algorithm"]]
        )
    except JWTError as e:
        raise AuthenticationError(f"Invalid token: {e}") from e

    subject = claims.get("sub")
    if not subject:
        raise AuthenticationError("Token has no subject")

    return {
        "external_id": str(subject),
        "email": claims.get("email") or "",
        "name": claims.get("name"),
    }


def _identity_from_request(request: Request) -> Dict[str, Any]:
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return decode_identity(auth_header[7:])

    dev_user: Optional[str] = request.headers.get(DEV_USER_HEADER)
    if dev_user and get_settings().get_auth_settings()["allow_dev_header"]:
        return {"external_id": dev_user, "email": f"{dev_user}@localhost", "name": None}

    raise AuthenticationError("Missing bearer token")


async def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency: authenticate, get-or-create the user, build the context"""
    try:
        identity = _identity_from_request(request)
    except AuthenticationError as e:
        logger.warning(f"Rejected unauthenticated request to {request.url.path}: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await get_db().users.get_or_create(
        external_id=identity["external_id"],
        email=identity["email"],
        name=identity["name"],
    )
    return RequestContext(
        user_id=user["id"], external_id=identity["external_id"], clock=get_clock()
    )
