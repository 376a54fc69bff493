"""Bearer-token authentication for the marketplace API.

Credentials are issued elsewhere; the API only verifies HS256 tokens signed
with the shared secret and turns their claims into a ``Principal``.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from fastapi import Header

from marketplace.config import settings
from marketplace.exceptions import ForbiddenError, UnauthorizedError


@dataclass(frozen=True)
class Principal:
    id: str
    role: str = "user"
    is_admin: bool = False


def decode_token(token: str) -> Principal:
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError:
        raise UnauthorizedError({"token": ["Invalid token"]}) from None

    user_id = claims.get("sub") or claims.get("id")
    if not user_id:
        raise UnauthorizedError({"token": ["Token carries no subject"]})
    role = claims.get("role", "user")
    return Principal(id=str(user_id), role=role, is_admin=bool(claims.get("is_admin")) or role == "admin")


def issue_token(user_id, role: str = "user", is_admin: bool = False, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Sign a token for seeding and tests."""
    payload = {
        "sub": str(user_id),
        "role": role,
        "is_admin": is_admin,
        "exp": datetime.now(UTC) + expires_in,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def current_principal(authorization: str | None = Header(None)) -> Principal:
    """FastAPI dependency resolving the caller from the ``Authorization`` header."""
    if not authorization:
        raise UnauthorizedError({"token": ["Access denied. No token provided."]})
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise UnauthorizedError({"token": ["Authorization header must be a bearer token"]})
    return decode_token(token.strip())


def require_admin(principal: Principal) -> Principal:
    if not principal.is_admin:
        raise ForbiddenError({"principal": ["Admin access required"]})
    return principal
