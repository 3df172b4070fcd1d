"""Utilities for validating access tokens issued by the ParkNcharge auth service."""

from __future__ import annotations

from typing import Any

import jwt

from ..config import get_settings
from ..domain.contracts import CallerIdentity
from ..domain.errors import AuthenticationError, ForbiddenRoleError


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT returning its payload.

    Parameters
    ----------
    token:
        Encoded JWT issued by the auth service.

    Returns
    -------
    dict[str, Any]
        The decoded payload if signature, expiry and issuer checks succeed.

    Raises
    ------
    jwt.PyJWTError
        Propagated when the token is invalid, expired, or signed by another issuer.
    """

    settings = get_settings()
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=["HS256"],
        issuer=settings.jwt_issuer,
        options={"require": ["sub", "exp"]},
    )


def identity_from_authorization(authorization: str | None) -> CallerIdentity:
    """Resolve the caller from an ``Authorization: Bearer`` header value."""
    if not authorization:
        raise AuthenticationError("UNAUTHORIZED")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("UNAUTHORIZED")
    try:
        claims = decode_access_token(token.strip())
        user_id = int(claims["sub"])
    except (jwt.PyJWTError, KeyError, ValueError) as exc:
        raise AuthenticationError("UNAUTHORIZED") from exc
    return CallerIdentity(user_id=user_id, role=str(claims.get("role", "")))


def ensure_role(identity: CallerIdentity) -> CallerIdentity:
    """Reject callers whose role may not administer RFID accounts."""
    if identity.role not in get_settings().allowed_roles:
        raise ForbiddenRoleError("FORBIDDEN_ACCESS")
    return identity
