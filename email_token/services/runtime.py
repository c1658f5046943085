"""Bootstrap of the email token mechanism.

build_runtime() is called once by create_app(). The resulting
EmailTokenRuntime is stored on ``app.state.email_token`` and is the single
owner of the ServiceState, the login service registry and, for the memory
backend, the token store.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta

from email_token.core.config import Settings
from email_token.services.authenticator import JwtSessionIssuer
from email_token.services.login_service_registry import LoginServiceRegistry
from email_token.services.service_state import ServiceState
from email_token.services.token_store import InMemoryTokenStore

logger = logging.getLogger(__name__)


@dataclass
class EmailTokenRuntime:
    """Process-wide collaborators shared by every request.

    Attributes:
        state: Enable gate for issuance and verification.
        registry: Login options published to UI clients.
        sessions: Session issuer used after a successful login.
        token_bytes: Random bytes per issued token.
        home_url: Application root users land on after signing in.
        settings: Settings the runtime was built from; request handlers
            read cookie flags from here rather than the process defaults.
        memory_store: Token store when the memory backend is configured,
            None when tokens are stored in the database.
    """

    state: ServiceState
    registry: LoginServiceRegistry
    sessions: JwtSessionIssuer
    token_bytes: int
    home_url: str
    settings: Settings
    memory_store: InMemoryTokenStore | None = None


def build_runtime(config: Settings) -> EmailTokenRuntime:
    """Construct the runtime from settings.

    The registry listener is attached before enable() so that an enabled
    deployment publishes its login option immediately.

    Args:
        config: Application settings.

    Returns:
        EmailTokenRuntime ready to be stored on app.state.
    """
    state = ServiceState()
    registry = LoginServiceRegistry()
    if config.email_token_ui_enabled:
        state.add_listener(
            registry.listener_for(
                config.email_token_service_id,
                config.email_token_service_label,
            )
        )

    secret = config.auth_secret.get_secret_value()
    if not secret:
        # Production settings validation rejects an empty secret
        logger.warning("AUTH_SECRET not set; sessions will not survive a restart")
        secret = secrets.token_hex(32)

    runtime = EmailTokenRuntime(
        state=state,
        registry=registry,
        sessions=JwtSessionIssuer(
            secret=secret,
            ttl=timedelta(minutes=config.session_ttl_minutes),
            audience=config.auth_audience,
            issuer=config.auth_issuer,
        ),
        token_bytes=config.email_token_bytes,
        home_url=f"{config.frontend_url.rstrip('/')}/",
        settings=config,
        memory_store=(
            InMemoryTokenStore() if config.email_token_store == "memory" else None
        ),
    )

    if config.email_token_enabled:
        state.enable()

    return runtime
