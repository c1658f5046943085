"""Process-wide enable/disable gate for email token login.

One ServiceState is constructed at application bootstrap and shared by the
issuer, the verifier and the HTTP layer. Side effects of switching the
mechanism on or off (such as publishing it as a login option) live in
listeners, which are called on transition edges only.

Usage:
    state = ServiceState()
    state.add_listener(registry.listener_for("emailToken", "an Email + Token"))
    state.enable()
"""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

# Called with the new value of the flag after each transition
StateListener = Callable[[bool], None]


class ServiceState:
    """Enable flag with edge-triggered listeners.

    The flag starts disabled. Mutations are serialized by a lock so that
    concurrent enable()/disable() calls produce exactly one notification
    per transition; reads are a plain attribute read.
    """

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = enabled
        self._lock = threading.RLock()
        self._listeners: list[StateListener] = []

    def is_enabled(self) -> bool:
        """Return whether new logins are accepted."""
        return self._enabled

    def enable(self) -> None:
        """Accept new logins. No-op if already enabled."""
        self._set(True)

    def disable(self) -> None:
        """Refuse new logins. No-op if already disabled."""
        self._set(False)

    def add_listener(self, listener: StateListener) -> None:
        """Subscribe to enabled/disabled transitions."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        """Unsubscribe a listener added with add_listener().

        Raises:
            ValueError: If the listener was never added.
        """
        with self._lock:
            self._listeners.remove(listener)

    def _set(self, enabled: bool) -> None:
        with self._lock:
            if self._enabled == enabled:
                return
            self._enabled = enabled
            listeners = list(self._listeners)
            # Notify under the lock so listeners observe transitions in order
            logger.info("Email token login %s", "enabled" if enabled else "disabled")
            for listener in listeners:
                listener(enabled)
