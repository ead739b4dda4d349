"""
Unit tests for auth_session/core/exceptions.py - Custom Exception Classes.
"""

import pytest


class TestAuthSessionException:
    """Tests for the base exception."""

    def test_base_exception_inherits_from_exception(self):
        from auth_session.core.exceptions import AuthSessionException

        assert issubclass(AuthSessionException, Exception)

    def test_base_exception_has_message_and_code(self):
        from auth_session.core.exceptions import AuthSessionException, ErrorCode

        exc = AuthSessionException("Something went wrong")

        assert exc.message == "Something went wrong"
        assert str(exc) == "Something went wrong"
        assert exc.error_code == ErrorCode.SESSION_ERROR

    def test_extra_kwargs_become_attributes(self):
        from auth_session.core.exceptions import AuthSessionException

        exc = AuthSessionException("bad", state="expired")

        assert exc.state == "expired"


class TestSubclasses:
    """Each subclass carries its own error code."""

    @pytest.mark.parametrize(
        "name,code",
        [
            ("InvalidCredentialError", "INVALID_CREDENTIAL"),
            ("AuthError", "AUTH_ERROR"),
            ("RefreshFailedError", "REFRESH_FAILED"),
            ("StoreError", "STORE_ERROR"),
            ("CredentialValidationError", "VALIDATION_ERROR"),
        ],
    )
    def test_error_codes(self, name, code):
        from auth_session.core import exceptions

        cls = getattr(exceptions, name)
        exc = cls("message")

        assert isinstance(exc, exceptions.AuthSessionException)
        assert exc.error_code == code

    def test_auth_error_attributes(self):
        from auth_session.core.exceptions import AuthError

        exc = AuthError("Wrong email or password", provider="db", status_code=403)

        assert exc.provider == "db"
        assert exc.status_code == 403

    def test_refresh_in_progress_default_message(self):
        from auth_session.core.exceptions import ErrorCode, RefreshInProgressError

        exc = RefreshInProgressError()

        assert "already in progress" in exc.message
        assert exc.error_code == ErrorCode.REFRESH_IN_PROGRESS

    def test_validation_error_field(self):
        from auth_session.core.exceptions import CredentialValidationError

        assert CredentialValidationError("x", field="email").field == "email"


class TestProviderTimeoutError:
    """ProviderTimeoutError is catchable as either refresh or auth failure."""

    def test_is_refresh_failed_and_auth_error(self):
        from auth_session.core.exceptions import (
            AuthError,
            ProviderTimeoutError,
            RefreshFailedError,
        )

        exc = ProviderTimeoutError("timed out", operation="refresh", timeout_seconds=30)

        assert isinstance(exc, RefreshFailedError)
        assert isinstance(exc, AuthError)

    def test_attributes(self):
        from auth_session.core.exceptions import ErrorCode, ProviderTimeoutError

        exc = ProviderTimeoutError("timed out", operation="login", timeout_seconds=2.5)

        assert exc.operation == "login"
        assert exc.timeout_seconds == 2.5
        assert exc.error_code == ErrorCode.PROVIDER_TIMEOUT
        assert exc.provider is None
        assert exc.status_code is None

    def test_package_exports(self):
        import auth_session

        assert auth_session.ProviderTimeoutError is not None
        assert auth_session.SessionManager is not None
