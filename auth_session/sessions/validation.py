"""
Form validation for the login and signup flows.

Runs before any identity provider call so that obviously bad input never
leaves the device.
"""

import re
from typing import Optional

from auth_session.core.exceptions import CredentialValidationError

EMAIL_PATTERN = re.compile(r"^[\w\-.]+@([\w-]+\.)+[\w-]{2,4}$")
MIN_PASSWORD_LENGTH = 8


def validate_login_form(email: Optional[str], password: Optional[str]) -> None:
    """
    Validate login input: both fields are required.

    Raises:
        CredentialValidationError: With `field` set to the offending input.
    """
    if not email:
        raise CredentialValidationError("Please enter your email", field="email")
    if not password:
        raise CredentialValidationError("Please enter your password", field="password")


def validate_signup_form(
    email: Optional[str],
    password: Optional[str],
    confirm_password: Optional[str] = None,
) -> None:
    """
    Validate signup input.

    The email must look like an address, the password must be at least
    MIN_PASSWORD_LENGTH characters, and confirm_password (when given) must
    match it.

    Raises:
        CredentialValidationError: With `field` set to the offending input.
    """
    if not email:
        raise CredentialValidationError("Please enter your email", field="email")
    if not EMAIL_PATTERN.match(email):
        raise CredentialValidationError("Please enter a valid email", field="email")
    if not password:
        raise CredentialValidationError("Please enter your password", field="password")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise CredentialValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            field="password",
        )
    if confirm_password is not None:
        if not confirm_password:
            raise CredentialValidationError(
                "Please confirm your password", field="confirm_password"
            )
        if confirm_password != password:
            raise CredentialValidationError(
                "Passwords do not match", field="confirm_password"
            )
