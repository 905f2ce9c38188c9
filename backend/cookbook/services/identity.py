"""
Identity Service.

Owns credentials (accounts table), password hashing and token issuing.
Profiles are not stored here; they live in the users collection.
"""

import logging
from datetime import timedelta
from typing import Callable, Optional

from jose import JWTError
from sqlalchemy.orm import Session

from cookbook.config import settings
from cookbook.core import security
from cookbook.database import SessionLocal, get_db_context
from cookbook.models.account import Account

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """Credential or account failure reported by the identity service."""


def log_password_reset(email: str, token: str) -> None:
    """Default reset delivery: no mail transport, only an audit line."""
    logger.info(f"Password reset token issued for {email}")


class IdentityService:
    def __init__(
        self,
        session_factory=None,
        password_reset_sender: Optional[Callable[[str, str], None]] = None,
    ):
        self.session_factory = session_factory or SessionLocal
        self.password_reset_sender = password_reset_sender or log_password_reset

    @staticmethod
    def _detach(db: Session, account: Account) -> Account:
        db.refresh(account)
        db.expunge(account)
        return account

    def get_account(self, account_id: str) -> Optional[Account]:
        """Get an account by id."""
        with get_db_context(self.session_factory) as db:
            account = db.query(Account).filter(Account.id == account_id).first()
            return self._detach(db, account) if account else None

    def get_account_by_email(self, email: str) -> Optional[Account]:
        """Get an account by email."""
        with get_db_context(self.session_factory) as db:
            account = db.query(Account).filter(Account.email == email.lower()).first()
            return self._detach(db, account) if account else None

    def create_account(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> Account:
        """Create a new account."""
        email = email.lower()
        with get_db_context(self.session_factory) as db:
            if db.query(Account).filter(Account.email == email).first():
                raise IdentityError("The email address is already in use by another account")

            account = Account(
                email=email,
                hashed_password=security.get_password_hash(password),
                display_name=display_name,
            )
            db.add(account)
            db.commit()
            logger.info(f"Account created: {account.id}")
            return self._detach(db, account)

    def authenticate(self, email: str, password: str) -> Account:
        """Authenticate by email and password."""
        account = self.get_account_by_email(email)
        if account is None or not security.verify_password(password, account.hashed_password):
            raise IdentityError("Invalid email or password")
        if not account.is_active:
            raise IdentityError("This account has been disabled")
        return account

    def update_display_name(self, account_id: str, display_name: str) -> None:
        with get_db_context(self.session_factory) as db:
            account = db.query(Account).filter(Account.id == account_id).first()
            if account is None:
                raise IdentityError("No account with this id")
            account.display_name = display_name
            db.commit()

    def delete_account(self, account_id: str) -> None:
        with get_db_context(self.session_factory) as db:
            account = db.query(Account).filter(Account.id == account_id).first()
            if account is None:
                raise IdentityError("No account with this id")
            db.delete(account)
            db.commit()
            logger.info(f"Account deleted: {account_id}")

    def send_password_reset(self, email: str) -> None:
        """Issue a reset token and hand it to the configured sender."""
        account = self.get_account_by_email(email)
        if account is None:
            raise IdentityError("There is no account with this email address")
        token = security.create_token(
            account.id,
            purpose=security.PASSWORD_RESET_PURPOSE,
            expires_delta=timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
        )
        self.password_reset_sender(account.email, token)

    def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password using a reset token."""
        try:
            account_id = security.decode_token(token, purpose=security.PASSWORD_RESET_PURPOSE)
        except JWTError as e:
            raise IdentityError(f"Invalid or expired reset token: {e}") from e

        with get_db_context(self.session_factory) as db:
            account = db.query(Account).filter(Account.id == account_id).first()
            if account is None:
                raise IdentityError("No account with this id")
            account.hashed_password = security.get_password_hash(new_password)
            db.commit()
        logger.info(f"Password reset completed for {account_id}")

    def account_from_token(self, token: str) -> Account:
        """Resolve a bearer access token to its account."""
        try:
            account_id = security.decode_token(token)
        except JWTError as e:
            raise IdentityError("Could not validate credentials") from e
        account = self.get_account(account_id)
        if account is None or not account.is_active:
            raise IdentityError("Could not validate credentials")
        return account

    def create_user_token(self, account: Account) -> dict:
        """Create access token for an account."""
        access_token = security.create_access_token(account.id)
        return {"access_token": access_token, "token_type": "bearer"}


identity_service = IdentityService()
