"""Storage for pending token digests.

The issuer and verifier depend only on the TokenStore protocol. Both
operations are atomic per identity:
- replace() supersedes any pending digest in one step
- consume() removes and returns the pending digest in one step

InMemoryTokenStore suits single-process deployments and tests;
SqlTokenStore persists to PostgreSQL through EmailTokenRepository.
"""

import threading
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from email_token.repositories.email_token_repository import EmailTokenRepository
from email_token.services.token_hasher import TokenDigest


class TokenStore(Protocol):
    """Per-identity storage of the single live TokenDigest."""

    async def replace(self, identifier: str, digest: TokenDigest) -> None:
        """Store ``digest`` for ``identifier``, superseding any pending digest."""
        ...

    async def consume(self, identifier: str) -> TokenDigest | None:
        """Remove and return the pending digest for ``identifier``, if any."""
        ...

    async def peek(self, identifier: str) -> TokenDigest | None:
        """Return the pending digest for ``identifier`` without removing it."""
        ...

    async def commit(self) -> None:
        """Make writes since the last commit durable."""
        ...


class InMemoryTokenStore:
    """Dict-backed TokenStore.

    A lock makes each operation atomic across threads as well as across
    coroutines on one event loop. Contents are lost on restart.
    """

    def __init__(self) -> None:
        self._digests: dict[str, TokenDigest] = {}
        self._lock = threading.Lock()

    async def replace(self, identifier: str, digest: TokenDigest) -> None:
        with self._lock:
            self._digests[identifier] = digest

    async def consume(self, identifier: str) -> TokenDigest | None:
        with self._lock:
            return self._digests.pop(identifier, None)

    async def peek(self, identifier: str) -> TokenDigest | None:
        with self._lock:
            return self._digests.get(identifier)

    async def commit(self) -> None:
        """Writes are applied immediately; nothing to do."""

    def __len__(self) -> int:
        with self._lock:
            return len(self._digests)


class SqlTokenStore:
    """TokenStore bound to one database session.

    Writes are flushed on each call and made durable by commit(). A
    failed request is rolled back by the session owner (get_db).
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def replace(self, identifier: str, digest: TokenDigest) -> None:
        await EmailTokenRepository.replace(
            self._db,
            identifier=identifier,
            digest=digest.digest,
            algorithm=digest.algorithm,
        )

    async def consume(self, identifier: str) -> TokenDigest | None:
        row = await EmailTokenRepository.consume(self._db, identifier=identifier)
        if row is None:
            return None
        digest, algorithm = row
        return TokenDigest(digest=digest, algorithm=algorithm)

    async def peek(self, identifier: str) -> TokenDigest | None:
        token = await EmailTokenRepository.get(self._db, identifier=identifier)
        if token is None:
            return None
        return TokenDigest(digest=token.digest, algorithm=token.algorithm)

    async def commit(self) -> None:
        await self._db.commit()
