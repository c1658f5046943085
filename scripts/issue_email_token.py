"""Issue an email token login link from the command line.

Operator tool for support cases where the email could not be delivered.
Issuing supersedes any unredeemed token for the address, exactly like a
sign-in request through the API. Refused when EMAIL_TOKEN_ENABLED is false.

Usage:
    python -m scripts.issue_email_token user@example.com
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from email_token.core.config import Settings
from email_token.core.email import build_login_url
from email_token.services.service_state import ServiceState
from email_token.services.token_issuer import TokenIssuer, normalize_identifier
from email_token.services.token_store import SqlTokenStore

logger = logging.getLogger(__name__)


async def issue_login_link(session: AsyncSession, email: str, config: Settings) -> str:
    """Issue a token for ``email`` and return its login URL.

    The caller commits the session.

    Raises:
        ServiceDisabledError: If email token login is disabled in ``config``.
    """
    state = ServiceState(enabled=config.email_token_enabled)
    issuer = TokenIssuer(
        state,
        SqlTokenStore(session),
        token_bytes=config.email_token_bytes,
    )
    token = await issuer.issue(email)
    return build_login_url(
        normalize_identifier(email), token, base_url=config.backend_url
    )


async def main() -> None:
    """CLI entry point: issue a link against the configured database."""
    import argparse
    import sys

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from email_token.core.config import settings
    from email_token.services.token_errors import ServiceDisabledError

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("email", help="Address the token is bound to")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = create_async_engine(settings.database_url, echo=False)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        async with factory() as session:
            url = await issue_login_link(session, args.email, settings)
            await session.commit()
    except ServiceDisabledError:
        logger.error("Email token login is disabled (EMAIL_TOKEN_ENABLED=false)")
        sys.exit(1)
    finally:
        await engine.dispose()

    print(url)
    sys.exit(0)


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
