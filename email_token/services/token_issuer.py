"""Issuance of single-use email login tokens.

The issuer generates a random token, stores only its digest for the
identity (superseding any earlier unredeemed token) and hands the plaintext
back for out-of-band delivery.
"""

import logging
import secrets

from email_token.core.config import MIN_TOKEN_BYTES
from email_token.services.service_state import ServiceState
from email_token.services.token_errors import ServiceDisabledError
from email_token.services.token_hasher import (
    DEFAULT_ALGORITHM,
    hash_token,
    supported_algorithms,
)
from email_token.services.token_store import TokenStore

logger = logging.getLogger(__name__)

# 256 bits; token_urlsafe(32) yields a 43-character URL-safe string
DEFAULT_TOKEN_BYTES = 32


def normalize_identifier(email: str) -> str:
    """Normalize an email address into the key tokens are stored under.

    Raises:
        ValueError: If the email is empty or whitespace.
    """
    identifier = email.strip().lower()
    if not identifier:
        raise ValueError("Email must not be empty")
    return identifier


class TokenIssuer:
    """Issues email login tokens.

    Args:
        state: Shared enable gate.
        store: Storage for pending digests.
        token_bytes: Random bytes per token (at least 16).
        algorithm: Hash algorithm tag for new digests.
    """

    def __init__(
        self,
        state: ServiceState,
        store: TokenStore,
        *,
        token_bytes: int = DEFAULT_TOKEN_BYTES,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> None:
        if token_bytes < MIN_TOKEN_BYTES:
            raise ValueError(f"token_bytes must be at least {MIN_TOKEN_BYTES}")
        if algorithm not in supported_algorithms():
            raise ValueError(f"Unsupported token hash algorithm: {algorithm!r}")
        self._state = state
        self._store = store
        self._token_bytes = token_bytes
        self._algorithm = algorithm

    async def issue(self, email: str) -> str:
        """Issue a new token for ``email``.

        Any earlier unredeemed token for the same identity stops working.

        Args:
            email: Email address the token is bound to.

        Returns:
            Plaintext token to embed in the login link. It is not stored.

        Raises:
            ServiceDisabledError: If the mechanism is disabled.
            ValueError: If the email is empty.
        """
        if not self._state.is_enabled():
            raise ServiceDisabledError()

        identifier = normalize_identifier(email)
        plaintext = secrets.token_urlsafe(self._token_bytes)
        await self._store.replace(identifier, hash_token(plaintext, self._algorithm))

        logger.info("Issued email token for %s", identifier)
        return plaintext
