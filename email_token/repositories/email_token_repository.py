"""Repository for EmailToken table operations.

Each write is a single statement so that issuing and redeeming tokens for
the same identity cannot interleave into a read-then-write race:
- replace: INSERT ... ON CONFLICT (identifier) DO UPDATE
- consume: DELETE ... RETURNING
"""

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from email_token.models.email_token import EmailToken


class EmailTokenRepository:
    """Stateless repository for EmailToken table operations.

    All methods are static with no instance state. Methods flush but do not
    commit; the caller owns the transaction.
    """

    @staticmethod
    async def replace(
        db: AsyncSession,
        *,
        identifier: str,
        digest: str,
        algorithm: str,
    ) -> None:
        """Store the pending digest for an identity, superseding any prior one.

        Args:
            db: Async database session.
            identifier: Normalized email address.
            digest: Hex digest of the plaintext token.
            algorithm: Algorithm tag for ``digest``.
        """
        stmt = insert(EmailToken).values(
            identifier=identifier,
            digest=digest,
            algorithm=algorithm,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[EmailToken.identifier],
            set_={
                "digest": stmt.excluded.digest,
                "algorithm": stmt.excluded.algorithm,
                "created_at": func.now(),
            },
        )
        await db.execute(stmt)
        await db.flush()

    @staticmethod
    async def consume(
        db: AsyncSession,
        *,
        identifier: str,
    ) -> tuple[str, str] | None:
        """Delete and return the pending digest for an identity.

        Args:
            db: Async database session.
            identifier: Normalized email address.

        Returns:
            (digest, algorithm) of the deleted row, or None if there was none.
        """
        stmt = (
            delete(EmailToken)
            .where(EmailToken.identifier == identifier)
            .returning(EmailToken.digest, EmailToken.algorithm)
        )
        result = await db.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return row.digest, row.algorithm

    @staticmethod
    async def get(
        db: AsyncSession,
        *,
        identifier: str,
    ) -> EmailToken | None:
        """Look up the pending token row without consuming it.

        Args:
            db: Async database session.
            identifier: Normalized email address.

        Returns:
            EmailToken if found, None otherwise.
        """
        stmt = select(EmailToken).where(EmailToken.identifier == identifier)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()
