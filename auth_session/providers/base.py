"""
Provider Base Interfaces - IdentityProvider and BiometricGate ports

These abstract base classes define what the session manager needs from the
outside world. The OAuth/OIDC exchanges and the biometric hardware live in
adapters (a native SDK bridge, an HTTP client, or the fakes in
providers/fake.py); the session manager only ever talks to these ports.

Design Pattern:
- Ports and Adapters (Hexagonal Architecture)
- IdentityProvider / BiometricGate serve as the "ports"
- Concrete SDK bridges and fakes serve as "adapters"
"""

from abc import ABC, abstractmethod
from typing import Optional

from auth_session.models.domain import Credentials, UserProfile


class IdentityProvider(ABC):
    """
    Abstract base class for identity provider adapters.

    Every method is a suspending network exchange. Implementations raise
    AuthError when the provider rejects the request; any other exception is
    treated by the session manager as an AuthError as well.

    Methods:
        login: Username/password (realm) authentication
        login_with_provider: Federated login (e.g. "google-oauth2")
        signup: Create an account and sign it in
        refresh: Exchange a refresh token for a fresh credential bundle
        revoke: Best-effort server-side invalidation
        user_profile: Fetch the signed-in user's profile
    """

    @abstractmethod
    async def login(self, email: str, password: str) -> Credentials:
        """
        Authenticate with email and password.

        Returns:
            Credentials: The issued credential bundle.

        Raises:
            AuthError: If the provider rejects the credentials.
        """
        ...

    @abstractmethod
    async def login_with_provider(self, provider_id: str) -> Credentials:
        """
        Authenticate through a federated connection.

        Args:
            provider_id: Connection identifier, e.g. "google-oauth2".

        Raises:
            AuthError: If the federated login fails or is cancelled.
        """
        ...

    @abstractmethod
    async def signup(self, email: str, password: str) -> Credentials:
        """
        Create a user and sign them in.

        Raises:
            AuthError: If the account cannot be created or signed in.
        """
        ...

    @abstractmethod
    async def refresh(self, credentials: Credentials) -> Credentials:
        """
        Exchange the bundle's refresh token for a new bundle.

        The returned bundle may omit refresh_token when the provider does not
        rotate it; the session manager keeps the previous one in that case.

        Raises:
            AuthError: If the refresh token is rejected.
        """
        ...

    @abstractmethod
    async def revoke(self, credentials: Credentials) -> None:
        """Invalidate the bundle server-side. Best-effort."""
        ...

    @abstractmethod
    async def user_profile(self, credentials: Credentials) -> Optional[UserProfile]:
        """Fetch the profile of the user the bundle belongs to."""
        ...


class BiometricGate(ABC):
    """
    Abstract base class for biometric prompt adapters.

    Used only as a precondition before restoring a remembered session.
    """

    @abstractmethod
    async def is_available(self) -> bool:
        """Whether the device can perform biometric authentication."""
        ...

    @abstractmethod
    async def authenticate(self, prompt: str) -> bool:
        """
        Prompt the user and report whether they were recognised.

        Args:
            prompt: Localized reason shown in the system dialog.
        """
        ...
