"""
Providers package: identity provider and biometric gate ports plus fakes.
"""

from auth_session.providers.base import BiometricGate, IdentityProvider
from auth_session.providers.fake import FakeBiometricGate, FakeIdentityProvider

__all__ = [
    "BiometricGate",
    "IdentityProvider",
    "FakeBiometricGate",
    "FakeIdentityProvider",
]
