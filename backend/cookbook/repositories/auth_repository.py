"""
Authentication repository.

One instance per client session. Forwards sign up / sign in / sign out /
password reset to the identity service, keeps the users/{uid} profile in
step, and exposes the signed-in identity as a stream.
"""

import asyncio
import logging
from typing import AsyncIterator, Optional

from cookbook.config import settings
from cookbook.constants import USERS_COLLECTION
from cookbook.models.account import Account
from cookbook.records import User
from cookbook.repositories.base import error_from, guarded, run_blocking
from cookbook.result import Error, Result, Success
from cookbook.services.document_store import DocumentStore
from cookbook.services.identity import IdentityService
from cookbook.state import MutableState

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Connection timeout. Please check your connection and try again."


class AuthRepository:
    def __init__(
        self,
        identity: IdentityService,
        store: DocumentStore,
        timeout: Optional[float] = None,
    ):
        self.identity = identity
        self.store = store
        self.timeout = settings.AUTH_TIMEOUT_SECONDS if timeout is None else timeout
        self._current: MutableState[Optional[Account]] = MutableState(None)

    async def current_user(self) -> AsyncIterator[Optional[Account]]:
        """
        Stream of the signed-in identity.

        Emits the current value right away and again on every sign in or
        sign out. Closing the iterator removes the listener.
        """
        async for account in self._current.updates():
            yield account

    @property
    def current_account(self) -> Optional[Account]:
        return self._current.value

    def is_user_signed_in(self) -> bool:
        return self._current.value is not None

    def get_current_user_id(self) -> Optional[str]:
        account = self._current.value
        return account.id if account is not None else None

    def access_token(self) -> Optional[dict]:
        """Bearer token for the signed-in identity, None when signed out."""
        account = self._current.value
        return self.identity.create_user_token(account) if account is not None else None

    async def sign_up(self, email: str, password: str, name: str) -> Result[User]:
        """Create the identity and its profile document."""
        logger.debug(f"Starting sign up for {email}")
        try:
            account = await asyncio.wait_for(
                run_blocking(self.identity.create_account, email, password, name),
                timeout=self.timeout,
            )
            user = User(uid=account.id, name=name, email=account.email, favorites=[])
            await run_blocking(self.store.set, USERS_COLLECTION, account.id, user.to_map())
        except asyncio.TimeoutError:
            logger.error(f"Sign up timed out after {self.timeout}s")
            return Error.of(TIMEOUT_MESSAGE)
        except Exception as e:
            logger.error(f"Sign up failed: {e}", exc_info=True)
            return error_from(e, "Sign up failed: ")

        self._current.set(account)
        logger.info(f"Sign up completed for {account.id}")
        return Success(user)

    async def sign_in(self, email: str, password: str) -> Result[User]:
        """Authenticate and load the profile, creating it when missing."""
        logger.debug(f"Starting sign in for {email}")
        try:
            account = await asyncio.wait_for(
                run_blocking(self.identity.authenticate, email, password),
                timeout=self.timeout,
            )
            user = await self._load_or_create_profile(account)
        except asyncio.TimeoutError:
            logger.error(f"Sign in timed out after {self.timeout}s")
            return Error.of(TIMEOUT_MESSAGE)
        except Exception as e:
            logger.error(f"Sign in failed: {e}", exc_info=True)
            return error_from(e, "Sign in failed: ")

        self._current.set(account)
        logger.info(f"Sign in completed for {account.id}")
        return Success(user)

    async def _load_or_create_profile(self, account: Account) -> User:
        data = await run_blocking(self.store.get, USERS_COLLECTION, account.id)
        if data is not None:
            return User.from_map(data)

        logger.info(f"Profile document missing for {account.id}, creating it")
        user = User(
            uid=account.id,
            name=account.display_name or "",
            email=account.email,
            favorites=[],
        )
        await run_blocking(self.store.set, USERS_COLLECTION, account.id, user.to_map())
        return user

    async def restore_session(self, token: str) -> Result[User]:
        """Sign this session in from a bearer access token."""
        try:
            account = await run_blocking(self.identity.account_from_token, token)
            user = await self._load_or_create_profile(account)
        except Exception as e:
            logger.warning(f"Session restore failed: {e}")
            return error_from(e)
        self._current.set(account)
        return Success(user)

    def sign_out(self) -> None:
        self._current.set(None)

    async def reset_password(self, email: str) -> Result[None]:
        return await guarded(
            logger,
            "Password reset",
            lambda: run_blocking(self.identity.send_password_reset, email),
        )

    async def confirm_password_reset(self, token: str, new_password: str) -> Result[None]:
        return await guarded(
            logger,
            "Password reset confirmation",
            lambda: run_blocking(self.identity.reset_password, token, new_password),
        )

    async def delete_account(self) -> Result[None]:
        """Delete the profile document, then the identity, then sign out."""
        account = self._current.value
        if account is None:
            return Error.of("No user signed in")

        async def _delete():
            await run_blocking(self.store.delete, USERS_COLLECTION, account.id)
            await run_blocking(self.identity.delete_account, account.id)

        result = await guarded(logger, "Account deletion", _delete)
        if result.is_success:
            self.sign_out()
        return result
