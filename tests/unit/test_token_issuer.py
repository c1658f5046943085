"""Tests for TokenIssuer.

Issuance is gated by ServiceState, stores only the digest, and supersedes
any earlier unredeemed token for the same identity.
"""

import pytest

from email_token.services.service_state import ServiceState
from email_token.services.token_errors import ServiceDisabledError
from email_token.services.token_hasher import hash_token
from email_token.services.token_issuer import TokenIssuer, normalize_identifier
from email_token.services.token_store import InMemoryTokenStore
from tests.conftest import TEST_EMAIL


class TestIssue:
    """Test TokenIssuer.issue()."""

    async def test_returns_urlsafe_plaintext(self, token_issuer: TokenIssuer):
        """Default token is 32 random bytes, URL-safe base64 (43 chars)."""
        token = await token_issuer.issue(TEST_EMAIL)
        assert len(token) == 43
        assert all(c.isalnum() or c in "-_" for c in token)

    async def test_stores_digest_not_plaintext(
        self, token_issuer: TokenIssuer, token_store: InMemoryTokenStore
    ):
        """The store holds the SHA-256 digest of the returned token."""
        token = await token_issuer.issue(TEST_EMAIL)
        stored = await token_store.peek(TEST_EMAIL)
        assert stored == hash_token(token)
        assert stored.digest != token

    async def test_tokens_are_unique(self, token_issuer: TokenIssuer):
        """Each issuance generates a fresh token."""
        tokens = {await token_issuer.issue(TEST_EMAIL) for _ in range(50)}
        assert len(tokens) == 50

    async def test_reissue_replaces_pending_digest(
        self, token_issuer: TokenIssuer, token_store: InMemoryTokenStore
    ):
        """At most one live digest per identity."""
        await token_issuer.issue(TEST_EMAIL)
        second = await token_issuer.issue(TEST_EMAIL)
        assert len(token_store) == 1
        assert await token_store.peek(TEST_EMAIL) == hash_token(second)

    async def test_identities_are_independent(
        self, token_issuer: TokenIssuer, token_store: InMemoryTokenStore
    ):
        """Issuing for one email leaves another's token alone."""
        first = await token_issuer.issue("one@example.com")
        await token_issuer.issue("two@example.com")
        assert await token_store.peek("one@example.com") == hash_token(first)
        assert len(token_store) == 2

    async def test_email_is_normalized(
        self, token_issuer: TokenIssuer, token_store: InMemoryTokenStore
    ):
        """Email case and surrounding whitespace do not create new identities."""
        token = await token_issuer.issue("  A@B.com ")
        assert await token_store.peek(TEST_EMAIL) == hash_token(token)

    async def test_token_bytes_controls_length(
        self, service_state: ServiceState, token_store: InMemoryTokenStore
    ):
        """token_urlsafe(64) yields an 86-character token."""
        issuer = TokenIssuer(service_state, token_store, token_bytes=64)
        assert len(await issuer.issue(TEST_EMAIL)) == 86

    async def test_disabled_state_refuses(
        self, token_store: InMemoryTokenStore
    ):
        """ServiceDisabledError when the mechanism is off; nothing stored."""
        issuer = TokenIssuer(ServiceState(), token_store)
        with pytest.raises(ServiceDisabledError):
            await issuer.issue(TEST_EMAIL)
        assert len(token_store) == 0

    async def test_reenable_restores_issuance(
        self, service_state: ServiceState, token_issuer: TokenIssuer
    ):
        """disable() then enable() lets issuance resume."""
        service_state.disable()
        with pytest.raises(ServiceDisabledError):
            await token_issuer.issue(TEST_EMAIL)
        service_state.enable()
        assert await token_issuer.issue(TEST_EMAIL)

    async def test_empty_email_rejected(self, token_issuer: TokenIssuer):
        """Blank emails are a caller error."""
        with pytest.raises(ValueError, match="empty"):
            await token_issuer.issue("   ")


class TestIssuerConstruction:
    """Test TokenIssuer argument validation."""

    def test_rejects_short_tokens(
        self, service_state: ServiceState, token_store: InMemoryTokenStore
    ):
        """Fewer than 16 random bytes is below 128 bits of entropy."""
        with pytest.raises(ValueError, match="at least 16"):
            TokenIssuer(service_state, token_store, token_bytes=8)

    def test_rejects_unknown_algorithm(
        self, service_state: ServiceState, token_store: InMemoryTokenStore
    ):
        """New digests must use a registered algorithm."""
        with pytest.raises(ValueError, match="crc32"):
            TokenIssuer(service_state, token_store, algorithm="crc32")


class TestNormalizeIdentifier:
    """Test normalize_identifier()."""

    def test_lowercases_and_strips(self):
        """Identifiers are trimmed, lowercase emails."""
        assert normalize_identifier("  User@Example.COM\n") == "user@example.com"

    def test_rejects_blank(self):
        """Blank input has no identity."""
        with pytest.raises(ValueError):
            normalize_identifier("")
