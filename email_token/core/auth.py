"""Session JWT creation and cookie management.

Used after a successful email token login:
- create_jwt: signed HS256 session token for an identity
- decode_jwt: validate a session token read back from the cookie
- set_auth_cookie: httpOnly cookie carrying the session token
"""

from datetime import UTC, datetime, timedelta

import jwt
from fastapi import Response

from email_token.core.config import Settings


def create_jwt(
    *,
    subject: str,
    secret: str,
    audience: str,
    issuer: str,
    expires_delta: timedelta,
    now: datetime | None = None,
) -> str:
    """Create a signed JWT with standard claims.

    Args:
        subject: Identity for the sub claim (normalized email).
        secret: HMAC signing secret.
        audience: Value of the aud claim.
        issuer: Value of the iss claim.
        expires_delta: Time until expiration.
        now: Issue time. Defaults to the current time.

    Returns:
        Encoded JWT string.
    """
    issued_at = now or datetime.now(UTC)
    payload = {
        "sub": subject,
        "aud": audience,
        "iss": issuer,
        "exp": issued_at + expires_delta,
        "iat": issued_at,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def decode_jwt(token: str, secret: str, *, audience: str, issuer: str) -> dict:
    """Decode and validate a session JWT.

    Raises:
        jwt.InvalidTokenError: On bad signature, audience, issuer or expiry.
    """
    return jwt.decode(
        token,
        secret,
        algorithms=["HS256"],
        audience=audience,
        issuer=issuer,
        options={"require": ["sub", "exp", "iat"]},
    )


def set_auth_cookie(
    response: Response, token: str, *, max_age: int, config: Settings
) -> None:
    """Set httpOnly session cookie on response.

    Security: httpOnly prevents XSS cookie theft. Secure flag and SameSite
    are configured via settings for environment-appropriate security.

    Args:
        response: FastAPI response object.
        token: JWT token string.
        max_age: Cookie lifetime in seconds.
        config: Settings carrying the cookie name and flags.
    """
    response.set_cookie(
        key=config.auth_cookie_name,
        value=token,
        httponly=True,
        secure=config.auth_cookie_secure,
        samesite=config.auth_cookie_samesite,
        path="/",
        max_age=max_age,
        domain=config.auth_cookie_domain or None,
    )
