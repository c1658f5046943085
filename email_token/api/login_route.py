"""Inbound login route for emailed links.

Routes:
- GET /_emailToken/{email}/{token}: loading view that submits the login
- POST /_emailToken/{email}/{token}: redeem the token, start a session

Opening the link does not consume the token. Mail scanners that prefetch
links only ever see the loading view; the token is redeemed by the POST the
view submits from the user's browser.
"""

import logging
import secrets
from datetime import UTC, datetime
from html import escape

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.responses import Response

from email_token.api.deps import LoginAuthenticator, Runtime, Store
from email_token.core.auth import set_auth_cookie
from email_token.core.config import settings
from email_token.core.email import login_path
from email_token.core.rate_limiting import limiter
from email_token.services.token_errors import (
    INVALID_LINK,
    EmailTokenError,
    NoPendingTokenError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Tokens never contain "/", so the email segment may absorb decoded slashes
LOGIN_ROUTE = "/_emailToken/{email:path}/{token}"

_LOADING_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><meta name="robots" content="noindex"><title>Signing in</title></head>
<body>
<p role="status">Signing you in&hellip;</p>
<form id="email-token-login" method="post" action="{action}">
<noscript><button type="submit">Continue</button></noscript>
</form>
<script nonce="{nonce}">document.getElementById("email-token-login").submit();</script>
</body>
</html>
"""

_ERROR_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><meta name="robots" content="noindex"><title>Sign-in failed</title></head>
<body>
<h1>Sign-in failed</h1>
<p data-reason="{reason}">{message}</p>
<p><a href="{home}">Return to the application</a></p>
</body>
</html>
"""

# Status and message per public failure reason
_ERROR_STATUS = {INVALID_LINK: 400, "SERVICE_DISABLED": 403}
_ERROR_MESSAGES = {
    INVALID_LINK: "Invalid or expired link",
    "SERVICE_DISABLED": "Email sign-in links are currently unavailable",
}


def _no_referrer(response: Response) -> Response:
    # Token is in the URL; keep it out of Referer headers
    response.headers["Referrer-Policy"] = "no-referrer"
    response.headers["Cache-Control"] = "no-store"
    return response


def render_loading(action: str) -> HTMLResponse:
    """Render the loading view that posts back to ``action``."""
    nonce = secrets.token_urlsafe(16)
    response = HTMLResponse(
        _LOADING_PAGE.format(action=escape(action), nonce=nonce),
    )
    response.headers["Content-Security-Policy"] = (
        f"default-src 'none'; script-src 'nonce-{nonce}'; "
        "form-action 'self'; frame-ancestors 'none'"
    )
    return _no_referrer(response)


def render_error(error: EmailTokenError, home_url: str) -> HTMLResponse:
    """Render the failure view for a login error.

    Only the public reason is shown, so a missing token and a wrong token
    render identically.
    """
    message = _ERROR_MESSAGES.get(error.public_code, _ERROR_MESSAGES[INVALID_LINK])
    response = HTMLResponse(
        _ERROR_PAGE.format(
            reason=escape(error.public_code),
            message=escape(message),
            home=escape(home_url),
        ),
        status_code=_ERROR_STATUS.get(error.public_code, 400),
    )
    return _no_referrer(response)


@router.get(LOGIN_ROUTE, response_class=HTMLResponse)
async def email_token_landing(email: str, token: str) -> Response:
    """Show the loading view for an emailed login link.

    The form action is re-encoded from the decoded path parameters, so the
    POST reaches the same identity and token the link carried.
    """
    return render_loading(login_path(email, token))


@router.post(LOGIN_ROUTE)
@limiter.limit(lambda: settings.rate_limit_login)
async def email_token_login(
    request: Request,  # noqa: ARG001
    email: str,
    token: str,
    authenticator: LoginAuthenticator,
    store: Store,
    runtime: Runtime,
) -> Response:
    """Redeem an emailed token and start a session.

    The token is consumed whether or not it matches, so the store is
    committed on both paths before responding.

    Returns:
        303 redirect to the application root with the session cookie on
        success; the error view otherwise.
    """
    if not email.strip():
        # Blank identities can never hold a token
        return render_error(NoPendingTokenError(), runtime.home_url)

    try:
        session = await authenticator.login(email, token)
    except EmailTokenError as exc:
        await store.commit()
        logger.info("Email token login failed: %s", exc.code)
        return render_error(exc, runtime.home_url)

    await store.commit()

    response = RedirectResponse(url=runtime.home_url, status_code=303)
    max_age = int((session.expires_at - datetime.now(UTC)).total_seconds())
    set_auth_cookie(
        response,
        session.token,
        max_age=max(max_age, 0),
        config=runtime.settings,
    )
    return _no_referrer(response)
