"""Shared dependencies for API endpoints.

Wires the per-process EmailTokenRuntime (from ``app.state``) and the
per-request database session into the token issuer, verifier and
authenticator.

WHY DEPENDENCY INJECTION:
- No hidden globals: the runtime is built once in create_app()
- Easy to swap the token store (database → memory)
- Testable with overridden dependencies
"""

from typing import Annotated

import jwt
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from email_token.core.database import get_db
from email_token.core.errors import UnauthorizedError
from email_token.services.authenticator import EmailTokenAuthenticator
from email_token.services.runtime import EmailTokenRuntime
from email_token.services.token_issuer import TokenIssuer
from email_token.services.token_store import SqlTokenStore, TokenStore
from email_token.services.token_verifier import TokenVerifier

DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_runtime(request: Request) -> EmailTokenRuntime:
    """Return the runtime stored on the application by create_app()."""
    return request.app.state.email_token


Runtime = Annotated[EmailTokenRuntime, Depends(get_runtime)]


def get_token_store(runtime: Runtime, db: DbSession) -> TokenStore:
    """Return the configured token store.

    The memory store is shared process-wide; the database store is bound to
    the request's session.
    """
    if runtime.memory_store is not None:
        return runtime.memory_store
    return SqlTokenStore(db)


Store = Annotated[TokenStore, Depends(get_token_store)]


def get_token_issuer(runtime: Runtime, store: Store) -> TokenIssuer:
    """Build a TokenIssuer for this request."""
    return TokenIssuer(runtime.state, store, token_bytes=runtime.token_bytes)


def get_token_verifier(runtime: Runtime, store: Store) -> TokenVerifier:
    """Build a TokenVerifier for this request."""
    return TokenVerifier(runtime.state, store)


def get_authenticator(
    runtime: Runtime,
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> EmailTokenAuthenticator:
    """Build the login entry point for this request."""
    return EmailTokenAuthenticator(verifier, runtime.sessions)


Issuer = Annotated[TokenIssuer, Depends(get_token_issuer)]
LoginAuthenticator = Annotated[EmailTokenAuthenticator, Depends(get_authenticator)]


def get_session_identity(request: Request, runtime: Runtime) -> str:
    """Return the email address of the signed-in user.

    Validation steps:
    1. Read the session JWT from the cookie named by the runtime settings
    2. Verify signature, exp, aud and iss
    3. Return the sub claim

    Raises:
        UnauthorizedError: 401 for any session failure.
    """
    token = request.cookies.get(runtime.settings.auth_cookie_name)
    if not token:
        raise UnauthorizedError()

    try:
        return runtime.sessions.read_session(token)
    except jwt.InvalidTokenError as exc:
        raise UnauthorizedError() from exc


SessionIdentity = Annotated[str, Depends(get_session_identity)]
