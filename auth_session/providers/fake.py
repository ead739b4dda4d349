"""
Fake Identity Provider and Biometric Gate - Test Double Implementations

This module provides in-process implementations of the IdentityProvider and
BiometricGate ports that make no network or hardware calls.

This is NOT mocking - these are proper implementations of the interfaces with
real (deterministic) behaviour: users are registered, tokens are issued with a
lifetime, refresh tokens rotate, revoked tokens stop working. They can be used
for:
- Local development without an identity provider tenant
- Integration testing without network calls
- Demo/sandbox builds

Pattern: Test Doubles using duck typing (FakeRepository)
"""

import asyncio
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from auth_session.core.config import get_settings
from auth_session.core.exceptions import AuthError
from auth_session.models.domain import Credentials, UserProfile, utcnow
from auth_session.providers.base import BiometricGate, IdentityProvider


PASSWORD_REALM = "Username-Password-Authentication"


class FakeIdentityProvider(IdentityProvider):
    """
    Fake identity provider for testing and local development.

    Attributes:
        token_lifetime: Lifetime of every issued access token
        rotate_refresh_tokens: Issue a new refresh token on each refresh
        issue_refresh_tokens: Include a refresh token in login bundles
        error_on_login / error_on_refresh / error_on_revoke: Exceptions to
            raise from the matching call (for error testing)
        delay_seconds: Artificial latency added to refresh() (for timeout and
            concurrency testing)

    Example:
        >>> provider = FakeIdentityProvider(users={"a@example.com": "password1"})
        >>> creds = await provider.login("a@example.com", "password1")
        >>> creds.expires_at > utcnow()
        True
    """

    def __init__(
        self,
        users: Optional[dict[str, str]] = None,
        token_lifetime_seconds: Optional[int] = None,
        federated_connections: Optional[set[str]] = None,
        rotate_refresh_tokens: bool = True,
        issue_refresh_tokens: bool = True,
        error_on_login: Optional[Exception] = None,
        error_on_refresh: Optional[Exception] = None,
        error_on_revoke: Optional[Exception] = None,
        delay_seconds: float = 0.0,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if token_lifetime_seconds is None:
            token_lifetime_seconds = get_settings().default_token_lifetime_seconds
        self.token_lifetime = timedelta(seconds=token_lifetime_seconds)
        self.users: dict[str, str] = dict(users or {})
        self.federated_connections = (
            federated_connections
            if federated_connections is not None
            else {"google-oauth2"}
        )
        self.rotate_refresh_tokens = rotate_refresh_tokens
        self.issue_refresh_tokens = issue_refresh_tokens
        self.error_on_login = error_on_login
        self.error_on_refresh = error_on_refresh
        self.error_on_revoke = error_on_revoke
        self.delay_seconds = delay_seconds
        self._clock = clock or utcnow

        # Live tokens -> owning email
        self._access_tokens: dict[str, str] = {}
        self._refresh_tokens: dict[str, str] = {}

        # Track calls for test assertions
        self.login_calls: list[str] = []
        self.signup_calls: list[str] = []
        self.refresh_calls: list[Credentials] = []
        self.revoke_calls: list[Credentials] = []
        self.profile_calls: list[Credentials] = []

    # =========================================================================
    # IdentityProvider implementation
    # =========================================================================

    async def login(self, email: str, password: str) -> Credentials:
        self.login_calls.append(email)
        if self.error_on_login is not None:
            raise self.error_on_login

        if self.users.get(email) != password:
            raise AuthError(
                "Invalid credentials", provider=PASSWORD_REALM, status_code=403
            )
        return self._issue(email)

    async def login_with_provider(self, provider_id: str) -> Credentials:
        self.login_calls.append(provider_id)
        if self.error_on_login is not None:
            raise self.error_on_login

        if provider_id not in self.federated_connections:
            raise AuthError(
                f"Unknown connection: {provider_id}",
                provider=provider_id,
                status_code=400,
            )
        return self._issue(f"{provider_id}-user@example.com")

    async def signup(self, email: str, password: str) -> Credentials:
        self.signup_calls.append(email)
        if email in self.users:
            raise AuthError(
                "The user already exists", provider=PASSWORD_REALM, status_code=409
            )
        self.users[email] = password
        return await self.login(email, password)

    async def refresh(self, credentials: Credentials) -> Credentials:
        self.refresh_calls.append(credentials)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error_on_refresh is not None:
            raise self.error_on_refresh

        token = credentials.refresh_token
        if not token or token not in self._refresh_tokens:
            raise AuthError("Unknown or revoked refresh token", status_code=403)

        email = self._refresh_tokens[token]
        self._access_tokens.pop(credentials.access_token, None)
        if not self.rotate_refresh_tokens:
            return self._issue(email, with_refresh_token=False)

        del self._refresh_tokens[token]
        return self._issue(email)

    async def revoke(self, credentials: Credentials) -> None:
        self.revoke_calls.append(credentials)
        if self.error_on_revoke is not None:
            raise self.error_on_revoke

        self._access_tokens.pop(credentials.access_token, None)
        if credentials.refresh_token:
            self._refresh_tokens.pop(credentials.refresh_token, None)

    async def user_profile(self, credentials: Credentials) -> Optional[UserProfile]:
        self.profile_calls.append(credentials)
        email = self._access_tokens.get(credentials.access_token)
        if email is None:
            raise AuthError("Access token is not valid", status_code=401)

        return UserProfile(
            email=email,
            name=email.split("@", 1)[0],
            email_verified=True,
            updated_at=self._clock(),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def is_live(self, credentials: Credentials) -> bool:
        """Whether the bundle's access token has been issued and not revoked."""
        return credentials.access_token in self._access_tokens

    def _issue(self, email: str, with_refresh_token: bool = True) -> Credentials:
        access_token = f"fake-at-{uuid.uuid4().hex}"
        self._access_tokens[access_token] = email

        refresh_token = None
        if with_refresh_token and self.issue_refresh_tokens:
            refresh_token = f"fake-rt-{uuid.uuid4().hex}"
            self._refresh_tokens[refresh_token] = email

        return Credentials(
            access_token=access_token,
            refresh_token=refresh_token,
            id_token=f"fake-id-{uuid.uuid4().hex[:16]}",
            expires_at=self._clock() + self.token_lifetime,
            scopes=("openid", "profile", "email"),
        )


class FakeBiometricGate(BiometricGate):
    """
    Fake biometric gate with scripted answers.

    Attributes:
        available: Value returned by is_available()
        result: Value returned by authenticate()
        error: Exception raised by authenticate(), if set
        prompts: Prompts passed to authenticate(), for assertions
    """

    def __init__(
        self,
        available: bool = True,
        result: bool = True,
        error: Optional[Exception] = None,
    ) -> None:
        self.available = available
        self.result = result
        self.error = error
        self.prompts: list[str] = []

    async def is_available(self) -> bool:
        return self.available

    async def authenticate(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.result
