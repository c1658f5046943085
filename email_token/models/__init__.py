"""SQLAlchemy ORM models for the email token service.

All models are exported from this module for convenient imports:
    from email_token.models import Base, EmailToken

- email_token.py: EmailToken (one live digest per identity)
"""

from email_token.models.base import Base
from email_token.models.email_token import EmailToken

__all__ = [
    "Base",
    "EmailToken",
]
