"""
View-model for the login, registration and forgot-password screens.
"""

import asyncio
import logging
from typing import Optional

from cookbook.records import User
from cookbook.repositories.auth_repository import AuthRepository
from cookbook.result import Error, Loading, Result
from cookbook import validation
from cookbook.state import MutableState
from cookbook.viewmodels.base import ViewModel

logger = logging.getLogger(__name__)


class AuthViewModel(ViewModel):
    def __init__(self, auth_repository: AuthRepository):
        super().__init__()
        self.auth_repository = auth_repository

        self.auth_state: MutableState[Result[User]] = MutableState(Loading)
        self.reset_password_state: MutableState[Optional[Result[None]]] = MutableState(None)

        # Form fields
        self.email = MutableState("")
        self.password = MutableState("")
        self.name = MutableState("")
        self.confirm_password = MutableState("")

        # Field errors
        self.email_error: MutableState[Optional[str]] = MutableState(None)
        self.password_error: MutableState[Optional[str]] = MutableState(None)
        self.name_error: MutableState[Optional[str]] = MutableState(None)
        self.confirm_password_error: MutableState[Optional[str]] = MutableState(None)

    # --- Form updates (editing a field clears its error) ---

    def update_email(self, value: str) -> None:
        self.email.set(value)
        self.email_error.set(None)

    def update_password(self, value: str) -> None:
        self.password.set(value)
        self.password_error.set(None)

    def update_name(self, value: str) -> None:
        self.name.set(value)
        self.name_error.set(None)

    def update_confirm_password(self, value: str) -> None:
        self.confirm_password.set(value)
        self.confirm_password_error.set(None)

    # --- Actions ---

    def sign_in(self) -> Optional[asyncio.Task]:
        """Validate and sign in. Returns None when validation fails."""
        if not (self._validate_email() and self._validate_password()):
            return None
        return self.launch(
            self._run_auth(
                lambda: self.auth_repository.sign_in(self.email.value, self.password.value)
            ),
            key="auth",
        )

    def sign_up(self) -> Optional[asyncio.Task]:
        """Validate all four fields and sign up. Returns None when validation fails."""
        if not (
            self._validate_email()
            and self._validate_password()
            and self._validate_name()
            and self._validate_confirm_password()
        ):
            return None
        return self.launch(
            self._run_auth(
                lambda: self.auth_repository.sign_up(
                    self.email.value, self.password.value, self.name.value
                )
            ),
            key="auth",
        )

    async def _run_auth(self, call) -> None:
        self.auth_state.set(Loading)
        self.auth_state.set(await call())

    def reset_password(self, email: str) -> Optional[asyncio.Task]:
        if not email:
            self.reset_password_state.set(Error.of("Please enter your email"))
            return None
        if not validation.is_valid_email(email):
            self.reset_password_state.set(Error.of("Please enter a valid email"))
            return None

        async def _reset():
            self.reset_password_state.set(Loading)
            self.reset_password_state.set(await self.auth_repository.reset_password(email))

        return self.launch(_reset(), key="reset_password")

    def sign_out(self) -> None:
        self.auth_repository.sign_out()
        self.clear_form()
        self.auth_state.set(Loading)

    def clear_reset_password_state(self) -> None:
        self.reset_password_state.set(None)

    def clear_auth_state(self) -> None:
        self.auth_state.set(Loading)

    def clear_form(self) -> None:
        for field in (self.email, self.password, self.name, self.confirm_password):
            field.set("")
        for error in (
            self.email_error,
            self.password_error,
            self.name_error,
            self.confirm_password_error,
        ):
            error.set(None)

    # --- Validation ---

    def _validate_email(self) -> bool:
        self.email_error.set(validation.validate_email(self.email.value))
        return self.email_error.value is None

    def _validate_password(self) -> bool:
        self.password_error.set(validation.validate_password(self.password.value))
        return self.password_error.value is None

    def _validate_name(self) -> bool:
        self.name_error.set(validation.validate_name(self.name.value))
        return self.name_error.value is None

    def _validate_confirm_password(self) -> bool:
        self.confirm_password_error.set(
            validation.validate_confirm_password(
                self.password.value, self.confirm_password.value
            )
        )
        return self.confirm_password_error.value is None
