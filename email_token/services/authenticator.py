"""Login capability built on the token verifier.

Authenticator is what the login route depends on: it turns an
``(email, token)`` pair into an authenticated session or a typed error.
Session minting is delegated to a SessionIssuer so the token protocol stays
independent of how sessions are represented.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from email_token.core.auth import create_jwt, decode_jwt
from email_token.services.token_verifier import TokenVerifier


@dataclass(frozen=True)
class SessionGrant:
    """An authenticated session for an identity.

    Attributes:
        identifier: Normalized email address of the signed-in user.
        token: Opaque session token (a JWT for JwtSessionIssuer).
        expires_at: When the session token stops being accepted.
    """

    identifier: str
    token: str
    expires_at: datetime


class SessionIssuer(Protocol):
    """Mints sessions for identities that proved ownership of their email."""

    def issue_session(self, identifier: str) -> SessionGrant: ...


class Authenticator(Protocol):
    """Framework login entry point."""

    async def login(self, email: str, token: str) -> SessionGrant: ...


class JwtSessionIssuer:
    """SessionIssuer producing HS256 JWTs.

    Args:
        secret: HMAC signing secret.
        ttl: Session lifetime.
        audience: aud claim written and required on read.
        issuer: iss claim written and required on read.
    """

    def __init__(
        self, *, secret: str, ttl: timedelta, audience: str, issuer: str
    ) -> None:
        if not secret:
            raise ValueError("Session secret must not be empty")
        self._secret = secret
        self._ttl = ttl
        self._audience = audience
        self._issuer = issuer

    def issue_session(self, identifier: str) -> SessionGrant:
        now = datetime.now(UTC)
        token = create_jwt(
            subject=identifier,
            secret=self._secret,
            audience=self._audience,
            issuer=self._issuer,
            expires_delta=self._ttl,
            now=now,
        )
        return SessionGrant(
            identifier=identifier, token=token, expires_at=now + self._ttl
        )

    def read_session(self, token: str) -> str:
        """Return the identity a session token was minted for.

        Raises:
            jwt.InvalidTokenError: If the token is forged, expired or was
                minted for another audience or issuer.
        """
        payload = decode_jwt(
            token, self._secret, audience=self._audience, issuer=self._issuer
        )
        return payload["sub"]


class EmailTokenAuthenticator:
    """Authenticator that redeems an email token, then mints a session.

    Errors from the verifier (ServiceDisabledError, NoPendingTokenError,
    InvalidTokenError) propagate unchanged.
    """

    def __init__(self, verifier: TokenVerifier, sessions: SessionIssuer) -> None:
        self._verifier = verifier
        self._sessions = sessions

    async def login(self, email: str, token: str) -> SessionGrant:
        grant = await self._verifier.verify(email, token)
        return self._sessions.issue_session(grant.identifier)
