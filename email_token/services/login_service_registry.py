"""Registry of login options offered by the account UI.

UI clients read the registry to decide which sign-in choices to render.
Entries are keyed by a stable service id, so registering the same id twice
overwrites the earlier label instead of adding a duplicate.
"""

import threading
from dataclasses import dataclass

from email_token.services.service_state import StateListener


@dataclass(frozen=True)
class LoginService:
    """A selectable login option.

    Attributes:
        id: Stable identifier (e.g., "emailToken").
        label: Human-readable label shown in the UI.
    """

    id: str
    label: str


class LoginServiceRegistry:
    """Insertion-ordered mapping of service id to LoginService."""

    def __init__(self) -> None:
        self._services: dict[str, LoginService] = {}
        self._lock = threading.Lock()

    def register_service(self, service_id: str, label: str) -> None:
        """Add or replace the login option for ``service_id``."""
        with self._lock:
            self._services[service_id] = LoginService(id=service_id, label=label)

    def deregister_service(self, service_id: str) -> None:
        """Remove the login option for ``service_id`` if present."""
        with self._lock:
            self._services.pop(service_id, None)

    def services(self) -> list[LoginService]:
        """Return registered login options in registration order."""
        with self._lock:
            return list(self._services.values())

    def listener_for(self, service_id: str, label: str) -> StateListener:
        """Build a ServiceState listener that keeps this registry in sync.

        Args:
            service_id: Registry key for the mechanism.
            label: Label to register when the mechanism is enabled.

        Returns:
            Listener registering on enable and deregistering on disable.
        """

        def _on_transition(enabled: bool) -> None:
            if enabled:
                self.register_service(service_id, label)
            else:
                self.deregister_service(service_id)

        return _on_transition
