"""
Form validation shared by the view-models and the API.

Every validator returns an error message, or None when the value is fine.
"""

from typing import Iterable, List, Optional

from email_validator import EmailNotValidError, validate_email as _check_email

from cookbook.config import settings

MIN_NAME_LENGTH = 2


def is_valid_email(email: str) -> bool:
    """Syntax check only; deliverability is not checked."""
    try:
        _check_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def validate_email(email: str) -> Optional[str]:
    if not email:
        return "Email is required"
    if not is_valid_email(email):
        return "Please enter a valid email"
    return None


def validate_password(password: str, min_length: Optional[int] = None) -> Optional[str]:
    min_length = settings.MIN_PASSWORD_LENGTH if min_length is None else min_length
    if not password:
        return "Password is required"
    if len(password) < min_length:
        return f"Password must be at least {min_length} characters"
    return None


def validate_name(name: str) -> Optional[str]:
    if not name:
        return "Name is required"
    if len(name) < MIN_NAME_LENGTH:
        return f"Name must be at least {MIN_NAME_LENGTH} characters"
    return None


def validate_confirm_password(password: str, confirm_password: str) -> Optional[str]:
    if not confirm_password:
        return "Please confirm your password"
    if confirm_password != password:
        return "Passwords do not match"
    return None


def validate_sign_up(email: str, password: str, name: str, confirm_password: str) -> dict:
    """Run every sign-up check; returns {field: message} for failing fields."""
    errors = {
        "email": validate_email(email),
        "password": validate_password(password),
        "name": validate_name(name),
        "confirm_password": validate_confirm_password(password, confirm_password),
    }
    return {field: message for field, message in errors.items() if message}


def clean_lines(lines: Iterable[str]) -> List[str]:
    """Drop blank entries, keep order."""
    return [line for line in lines if line and line.strip()]


def validate_recipe(name: str, ingredients: Iterable[str], steps: Iterable[str]) -> Optional[str]:
    if not name or not name.strip():
        return "Recipe name is required"
    if not clean_lines(ingredients):
        return "Add at least one ingredient"
    if not clean_lines(steps):
        return "Add at least one step"
    return None
