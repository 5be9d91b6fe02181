"""Credential helpers: access tokens and placeholder password hashes."""

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from passlib.context import CryptContext

from app.config import settings

ACCESS_TOKEN_TYPE = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def unusable_password_hash() -> str:
    """Hash a random secret nobody knows.

    Accounts created by a staff import get one of these until the invitation
    is accepted and a real password is chosen.
    """
    return pwd_context.hash(secrets.token_urlsafe(32))


def create_access_token(
    user_id: uuid.UUID,
    tenant_id: uuid.UUID | None = None,
    role: str = "",
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a signed access token for a caller.

    Args:
        user_id: Becomes the ``sub`` claim
        tenant_id: School the caller acts for (None for super admins)
        role: Access role, e.g. SCHOOL_ADMIN
        expires_delta: Lifetime, defaults to the configured expiry
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)

    claims = {
        "sub": str(user_id),
        "tenant_id": str(tenant_id) if tenant_id else None,
        "role": role,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(claims, settings.effective_jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Return the claims of a valid, unexpired access token, else None."""
    try:
        claims = jwt.decode(
            token,
            settings.effective_jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.InvalidTokenError:
        return None

    return claims if claims.get("type") == ACCESS_TOKEN_TYPE else None
