"""Email token model - pending login token digests.

Stores the hashed form of the single live token issued to each identity.
The plaintext token is never stored.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from email_token.models.base import Base


class EmailToken(Base):
    """Pending email login token for one identity.

    The identifier is the primary key, so at most one unredeemed digest
    exists per email address. Issuing again overwrites the row; redeeming
    deletes it.

    Attributes:
        identifier: Normalized email address.
        digest: Hex digest of the plaintext token.
        algorithm: Hash algorithm tag used to produce the digest.
        created_at: When the current digest was issued.
    """

    __tablename__ = "email_tokens"

    identifier: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
    )
    digest: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
    )
    algorithm: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
