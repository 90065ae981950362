"""Bearer token verification.

The identity provider (embedded-wallet login) signs a JWT per session.
We never mint tokens in production — we only verify them and read the
subject claim, which is the provider's stable id for the person.

create_token exists for local development and tests, where the provider
is replaced by a shared HS256 secret.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from demoshare.config import settings


class TokenError(Exception):
    """Raised when token verification fails."""


def verify_token(token: str) -> str:
    """Verify a bearer token and return its subject.

    Raises TokenError on failure.
    """
    options = {"require": ["sub", "exp"]}
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise TokenError("Invalid token: missing subject")
    return subject


def create_token(subject: str, expires_minutes: Optional[int] = None) -> str:
    """Mint a token the way the identity provider would (dev/test only)."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes or 60),
    }
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
