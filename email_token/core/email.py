"""Email sending via Resend API.

Simple HTTP POST to Resend carrying the email token login link.
Uses plain-text email format.
"""

import logging
from urllib.parse import quote

import httpx

from email_token.core.config import settings

logger = logging.getLogger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"
_RESEND_TIMEOUT = 10.0

# Inbound login route; both segments are percent-encoded
LOGIN_PATH_TEMPLATE = "/_emailToken/{email}/{token}"


def login_path(email: str, token: str) -> str:
    """Return the percent-encoded login route path for an email and token.

    Both segments are encoded with no safe characters, so addresses
    containing ``/``, ``?``, ``#`` or ``%`` survive a round trip through
    the route's single decoding.
    """
    return LOGIN_PATH_TEMPLATE.format(
        email=quote(email, safe=""),
        token=quote(token, safe=""),
    )


def build_login_url(email: str, token: str, *, base_url: str | None = None) -> str:
    """Build the login link embedded in the email.

    Args:
        email: Recipient email address.
        token: Plain (unhashed) email token.
        base_url: Origin serving the login route. Defaults to settings.backend_url.

    Returns:
        Absolute URL of the form ``{base_url}/_emailToken/{email}/{token}``.
    """
    base = (base_url or settings.backend_url).rstrip("/")
    return f"{base}{login_path(email, token)}"


async def send_email_token_email(*, to_email: str, token: str) -> None:
    """Send an email token login link via Resend.

    Runs as a background task after the response has been sent, so delivery
    failures are logged rather than raised.

    Args:
        to_email: Recipient email address.
        token: Plain (unhashed) email token.
    """
    login_url = build_login_url(to_email, token)

    try:
        async with httpx.AsyncClient() as client:
            resp = await client.post(
                _RESEND_API_URL,
                headers={
                    "Authorization": f"Bearer {settings.resend_api_key.get_secret_value()}",
                },
                json={
                    "from": settings.email_from,
                    "to": to_email,
                    "subject": "Your sign-in link",
                    "text": (
                        f"Click this link to sign in:\n\n{login_url}\n\n"
                        "The link works once. Requesting a new link cancels this one. "
                        "If you didn't request this, you can safely ignore this email."
                    ),
                },
                timeout=_RESEND_TIMEOUT,
            )
            resp.raise_for_status()
    except httpx.HTTPError:
        logger.warning("Failed to send email token to %s", to_email, exc_info=True)
