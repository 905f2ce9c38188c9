"""
Tests for the identity service and token helpers
"""
from datetime import timedelta

import pytest
from jose import JWTError

from cookbook.core import security
from cookbook.services.identity import IdentityError


@pytest.mark.unit
class TestSecurity:
    """Tests for password hashing and tokens"""

    def test_password_hash_round_trip(self):
        hashed = security.get_password_hash("secret1")
        assert hashed != "secret1"
        assert security.verify_password("secret1", hashed)
        assert not security.verify_password("secret2", hashed)

    def test_malformed_hash(self):
        assert not security.verify_password("secret1", "not-a-hash")

    def test_token_round_trip(self):
        token = security.create_access_token("acc-1")
        assert security.decode_token(token) == "acc-1"

    def test_token_purpose_enforced(self):
        token = security.create_token("acc-1", purpose=security.PASSWORD_RESET_PURPOSE)
        with pytest.raises(JWTError):
            security.decode_token(token)

    def test_expired_token(self):
        token = security.create_access_token("acc-1", expires_delta=timedelta(seconds=-1))
        with pytest.raises(JWTError):
            security.decode_token(token)


@pytest.mark.unit
class TestIdentityService:
    """Tests for IdentityService"""

    def test_create_account(self, identity):
        account = identity.create_account("Cook@Example.com", "secret1", "Julia")
        assert account.id
        assert account.email == "cook@example.com"
        assert account.display_name == "Julia"
        assert account.is_active

    def test_duplicate_email(self, identity):
        identity.create_account("cook@example.com", "secret1")
        with pytest.raises(IdentityError, match="already in use"):
            identity.create_account("COOK@example.com", "secret2")

    def test_authenticate(self, identity):
        created = identity.create_account("cook@example.com", "secret1")
        assert identity.authenticate("cook@example.com", "secret1").id == created.id

    def test_authenticate_wrong_password(self, identity):
        identity.create_account("cook@example.com", "secret1")
        with pytest.raises(IdentityError, match="Invalid email or password"):
            identity.authenticate("cook@example.com", "wrong")

    def test_authenticate_unknown_email(self, identity):
        with pytest.raises(IdentityError, match="Invalid email or password"):
            identity.authenticate("ghost@example.com", "secret1")

    def test_update_display_name(self, identity):
        account = identity.create_account("cook@example.com", "secret1", "Julia")
        identity.update_display_name(account.id, "Jules")
        assert identity.get_account(account.id).display_name == "Jules"

    def test_delete_account(self, identity):
        account = identity.create_account("cook@example.com", "secret1")
        identity.delete_account(account.id)
        assert identity.get_account(account.id) is None

    def test_password_reset_flow(self, identity, reset_mailbox):
        identity.create_account("cook@example.com", "secret1")
        identity.send_password_reset("cook@example.com")

        assert len(reset_mailbox) == 1
        email, token = reset_mailbox[0]
        assert email == "cook@example.com"

        identity.reset_password(token, "newsecret")
        identity.authenticate("cook@example.com", "newsecret")
        with pytest.raises(IdentityError):
            identity.authenticate("cook@example.com", "secret1")

    def test_password_reset_unknown_email(self, identity, reset_mailbox):
        with pytest.raises(IdentityError):
            identity.send_password_reset("ghost@example.com")
        assert reset_mailbox == []

    def test_access_token_cannot_reset_password(self, identity):
        account = identity.create_account("cook@example.com", "secret1")
        token = identity.create_user_token(account)["access_token"]
        with pytest.raises(IdentityError, match="Invalid or expired reset token"):
            identity.reset_password(token, "newsecret")

    def test_account_from_token(self, identity):
        account = identity.create_account("cook@example.com", "secret1")
        token = identity.create_user_token(account)
        assert token["token_type"] == "bearer"
        assert identity.account_from_token(token["access_token"]).id == account.id

    def test_account_from_bad_token(self, identity):
        with pytest.raises(IdentityError):
            identity.account_from_token("garbage")
