"""Verification of presented email login tokens.

A pending digest is consumed by the first presentation whatever the
outcome, so each issued token gets exactly one verification attempt.
"""

import hmac
import logging
from dataclasses import dataclass

from email_token.services.service_state import ServiceState
from email_token.services.token_errors import (
    InvalidTokenError,
    NoPendingTokenError,
    ServiceDisabledError,
    UnsupportedAlgorithmError,
)
from email_token.services.token_hasher import hash_token
from email_token.services.token_issuer import normalize_identifier
from email_token.services.token_store import TokenStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenGrant:
    """Proof that a token was redeemed for an identity.

    Attributes:
        identifier: Normalized email address the token was bound to.
        algorithm: Algorithm tag of the redeemed digest.
    """

    identifier: str
    algorithm: str


class TokenVerifier:
    """Redeems email login tokens.

    Args:
        state: Shared enable gate.
        store: Storage for pending digests.
    """

    def __init__(self, state: ServiceState, store: TokenStore) -> None:
        self._state = state
        self._store = store

    async def verify(self, email: str, presented_token: str) -> TokenGrant:
        """Check ``presented_token`` against the pending digest for ``email``.

        Steps:
        1. Refuse outright if the mechanism is disabled (nothing consumed)
        2. Atomically remove the pending digest for the identity
        3. Hash the presented token with the stored digest's algorithm
        4. Compare digests in constant time

        Args:
            email: Email address from the login link.
            presented_token: Plaintext token from the login link.

        Returns:
            TokenGrant for the identity on a match.

        Raises:
            ServiceDisabledError: If the mechanism is disabled.
            NoPendingTokenError: If no token is outstanding for the identity.
            InvalidTokenError: If the token does not match. The pending
                token is consumed all the same.
            ValueError: If the email is empty.
        """
        if not self._state.is_enabled():
            raise ServiceDisabledError()

        identifier = normalize_identifier(email)
        stored = await self._store.consume(identifier)
        if stored is None:
            logger.info("Email token rejected for %s: no pending token", identifier)
            raise NoPendingTokenError()

        try:
            presented = hash_token(presented_token, stored.algorithm)
        except UnsupportedAlgorithmError as exc:
            logger.warning(
                "Pending email token for %s uses unsupported algorithm %r",
                identifier,
                stored.algorithm,
            )
            raise InvalidTokenError() from exc

        if not hmac.compare_digest(presented.digest, stored.digest):
            logger.info("Email token rejected for %s: digest mismatch", identifier)
            raise InvalidTokenError()

        logger.info("Email token redeemed for %s", identifier)
        return TokenGrant(identifier=identifier, algorithm=stored.algorithm)
