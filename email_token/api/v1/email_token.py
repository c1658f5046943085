"""Email token request + login service endpoints.

Endpoints:
- POST /auth/email-token : issue a token and email the login link
- GET /auth/services : login options currently offered to UI clients
- GET /auth/session : identity carried by the session cookie
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Request
from pydantic import BaseModel, ConfigDict, EmailStr

from email_token.api.deps import Issuer, Runtime, SessionIdentity, Store
from email_token.core.config import settings
from email_token.core.email import send_email_token_email
from email_token.core.errors import ServiceDisabledAPIError
from email_token.core.rate_limiting import limiter
from email_token.core.responses import DataResponse
from email_token.services.token_errors import ServiceDisabledError

logger = logging.getLogger(__name__)

router = APIRouter()

_SENT_MESSAGE = "If the address can sign in, a link has been sent"


# ===================================================================
# Request / response models
# ===================================================================


class EmailTokenRequest(BaseModel):
    """Request body for POST /auth/email-token."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr


class SessionSchema(BaseModel):
    """Response body for GET /auth/session."""

    email: str


class LoginServiceSchema(BaseModel):
    """A login option in GET /auth/services."""

    id: str
    label: str


# ===================================================================
# POST /auth/email-token
# ===================================================================


@router.post("/email-token")
@limiter.limit(lambda: settings.rate_limit_email_token)
async def request_email_token(
    request: Request,  # noqa: ARG001
    body: EmailTokenRequest,
    background_tasks: BackgroundTasks,
    issuer: Issuer,
    store: Store,
) -> DataResponse[dict]:
    """Request an email token login link.

    Issues a fresh token (superseding any unredeemed one for the address),
    commits the digest, and sends the email as a background task so the
    response returns immediately.

    Rate limit: settings.rate_limit_email_token per IP.
    """
    try:
        token = await issuer.issue(body.email)
    except ServiceDisabledError as exc:
        logger.info("Email token request rejected: service disabled")
        raise ServiceDisabledAPIError() from exc

    await store.commit()

    background_tasks.add_task(
        send_email_token_email,
        to_email=body.email.strip().lower(),
        token=token,
    )

    return DataResponse(data={"message": _SENT_MESSAGE})


# ===================================================================
# GET /auth/services
# ===================================================================


@router.get("/services")
async def list_login_services(
    runtime: Runtime,
) -> DataResponse[list[LoginServiceSchema]]:
    """Return the login options registered for the account UI.

    The email token option is present only while the mechanism is enabled.
    """
    return DataResponse(
        data=[
            LoginServiceSchema(id=service.id, label=service.label)
            for service in runtime.registry.services()
        ]
    )


# ===================================================================
# GET /auth/session
# ===================================================================


@router.get("/session")
async def get_session(identity: SessionIdentity) -> DataResponse[SessionSchema]:
    """Return who the session cookie belongs to.

    Returns 401 UNAUTHORIZED when the cookie is missing, expired or forged.
    """
    return DataResponse(data=SessionSchema(email=identity))
