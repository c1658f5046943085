"""One-way hashing of plaintext login tokens.

Only digests are persisted. Each digest is tagged with the algorithm that
produced it so stored tokens stay verifiable if the default changes.
"""

import hashlib
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from email_token.services.token_errors import UnsupportedAlgorithmError

# Tag written next to every digest produced with SHA-256
SHA256 = "sha-256"

DEFAULT_ALGORITHM = SHA256

# Cryptographic hashes only: the digest is the whole security boundary
_ALGORITHMS: dict[str, Callable[[bytes], Any]] = {
    SHA256: hashlib.sha256,
}


@dataclass(frozen=True)
class TokenDigest:
    """Persisted representation of a token.

    Attributes:
        digest: Lowercase hex digest of the UTF-8 encoded token.
        algorithm: Tag of the hash algorithm that produced ``digest``.
    """

    digest: str
    algorithm: str


def supported_algorithms() -> frozenset[str]:
    """Return the algorithm tags the hasher accepts."""
    return frozenset(_ALGORITHMS)


def hash_token(plaintext: str, algorithm: str = DEFAULT_ALGORITHM) -> TokenDigest:
    """Hash a plaintext token.

    Args:
        plaintext: Token as generated at issuance or presented at login.
        algorithm: Algorithm tag. Verification passes the tag stored with
            the pending digest rather than relying on the default.

    Returns:
        TokenDigest carrying the hex digest and the algorithm tag.

    Raises:
        UnsupportedAlgorithmError: If ``algorithm`` is not registered.
    """
    try:
        constructor = _ALGORITHMS[algorithm]
    except KeyError:
        raise UnsupportedAlgorithmError(algorithm) from None
    return TokenDigest(
        digest=constructor(plaintext.encode("utf-8")).hexdigest(),
        algorithm=algorithm,
    )
