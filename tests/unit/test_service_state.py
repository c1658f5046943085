"""Tests for ServiceState and the login service registry.

enable()/disable() are idempotent and notify listeners on transition edges
only; the registry listener mirrors the flag as a login option.
"""

import threading

import pytest

from email_token.services.login_service_registry import (
    LoginService,
    LoginServiceRegistry,
)
from email_token.services.service_state import ServiceState

_SERVICE_ID = "emailToken"
_LABEL = "an Email + Token"


class TestServiceStateFlag:
    """Test the enabled flag."""

    def test_disabled_by_default(self):
        """A new ServiceState refuses logins."""
        assert ServiceState().is_enabled() is False

    def test_enable_sets_flag(self):
        """enable() turns the flag on."""
        state = ServiceState()
        state.enable()
        assert state.is_enabled() is True

    def test_disable_clears_flag(self):
        """disable() turns the flag off."""
        state = ServiceState(enabled=True)
        state.disable()
        assert state.is_enabled() is False

    def test_enable_twice_then_disable_once_is_disabled(self):
        """Repeated enable() does not stack."""
        state = ServiceState()
        state.enable()
        state.enable()
        state.disable()
        assert state.is_enabled() is False


class TestServiceStateListeners:
    """Test edge-triggered listeners."""

    def test_listener_called_on_enable_edge(self):
        """Listener receives True on disabled -> enabled."""
        calls: list[bool] = []
        state = ServiceState()
        state.add_listener(calls.append)
        state.enable()
        assert calls == [True]

    def test_listener_not_called_on_repeated_enable(self):
        """Idempotent re-enable notifies nobody."""
        calls: list[bool] = []
        state = ServiceState()
        state.add_listener(calls.append)
        state.enable()
        state.enable()
        assert calls == [True]

    def test_listener_not_called_when_disabling_disabled_state(self):
        """disable() on a disabled state is silent."""
        calls: list[bool] = []
        state = ServiceState()
        state.add_listener(calls.append)
        state.disable()
        assert calls == []

    def test_listener_sees_each_transition_in_order(self):
        """Enable/disable cycles produce alternating notifications."""
        calls: list[bool] = []
        state = ServiceState()
        state.add_listener(calls.append)
        state.enable()
        state.disable()
        state.enable()
        assert calls == [True, False, True]

    def test_removed_listener_is_not_called(self):
        """remove_listener() stops notifications."""
        calls: list[bool] = []
        state = ServiceState()
        state.add_listener(calls.append)
        state.remove_listener(calls.append)
        state.enable()
        assert calls == []

    def test_remove_unknown_listener_raises(self):
        """Removing a listener that was never added is an error."""
        with pytest.raises(ValueError):
            ServiceState().remove_listener(lambda _enabled: None)

    def test_listener_error_propagates_after_flag_changes(self):
        """Listener failures reach the caller; the flag is already set."""

        def _boom(_enabled: bool) -> None:
            raise RuntimeError("listener failed")

        state = ServiceState()
        state.add_listener(_boom)
        with pytest.raises(RuntimeError, match="listener failed"):
            state.enable()
        assert state.is_enabled() is True

    def test_concurrent_enables_notify_once(self):
        """Racing enable() calls produce a single transition."""
        calls: list[bool] = []
        state = ServiceState()
        state.add_listener(calls.append)

        threads = [threading.Thread(target=state.enable) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert calls == [True]
        assert state.is_enabled() is True


class TestLoginServiceRegistry:
    """Test LoginServiceRegistry."""

    def test_starts_empty(self):
        """No login options are registered initially."""
        assert LoginServiceRegistry().services() == []

    def test_register_adds_service(self):
        """register_service() publishes an option."""
        registry = LoginServiceRegistry()
        registry.register_service(_SERVICE_ID, _LABEL)
        assert registry.services() == [LoginService(id=_SERVICE_ID, label=_LABEL)]

    def test_register_same_id_overwrites(self):
        """Re-registration replaces rather than duplicates."""
        registry = LoginServiceRegistry()
        registry.register_service(_SERVICE_ID, "old label")
        registry.register_service(_SERVICE_ID, _LABEL)
        assert registry.services() == [LoginService(id=_SERVICE_ID, label=_LABEL)]

    def test_deregister_removes_service(self):
        """deregister_service() removes the option."""
        registry = LoginServiceRegistry()
        registry.register_service(_SERVICE_ID, _LABEL)
        registry.deregister_service(_SERVICE_ID)
        assert registry.services() == []

    def test_deregister_unknown_id_is_noop(self):
        """Deregistering an absent id does nothing."""
        registry = LoginServiceRegistry()
        registry.register_service("password", "Password")
        registry.deregister_service(_SERVICE_ID)
        assert [s.id for s in registry.services()] == ["password"]

    def test_services_keep_registration_order(self):
        """Options are listed in the order they were registered."""
        registry = LoginServiceRegistry()
        registry.register_service("password", "Password")
        registry.register_service(_SERVICE_ID, _LABEL)
        assert [s.id for s in registry.services()] == ["password", _SERVICE_ID]


class TestRegistryListener:
    """Test the registry wired to a ServiceState."""

    @pytest.fixture
    def wired(self) -> tuple[ServiceState, LoginServiceRegistry]:
        state = ServiceState()
        registry = LoginServiceRegistry()
        state.add_listener(registry.listener_for(_SERVICE_ID, _LABEL))
        return state, registry

    def test_enable_registers_option(self, wired):
        """Enabling publishes the email token login option."""
        state, registry = wired
        state.enable()
        assert registry.services() == [LoginService(id=_SERVICE_ID, label=_LABEL)]

    def test_disable_deregisters_option(self, wired):
        """Disabling withdraws the option."""
        state, registry = wired
        state.enable()
        state.disable()
        assert registry.services() == []

    def test_enable_twice_disable_once_leaves_no_entry(self, wired):
        """No double registration survives a single disable."""
        state, registry = wired
        state.enable()
        state.enable()
        state.disable()
        assert state.is_enabled() is False
        assert registry.services() == []

    def test_disable_does_not_touch_other_services(self, wired):
        """Only the mechanism's own id is deregistered."""
        state, registry = wired
        registry.register_service("password", "Password")
        state.enable()
        state.disable()
        assert [s.id for s in registry.services()] == ["password"]
