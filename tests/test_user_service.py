"""Tests for account operations of the user service."""

import pytest
from sqlalchemy import select

from app.core.exceptions import IncorrectPassword
from app.core.security import verify_password
from app.crud.refresh_token import CRUDRefreshToken
from app.models import RefreshToken, User
from app.services.auth import AuthService, auth_service
from app.services.user import UserService, user_service

PASSWORD = "Aa1!aaaa"
NEW_PASSWORD = "Bb2@bbbbb"


class BrokenRevocationStore(CRUDRefreshToken):
    """Refresh token store whose bulk revocation fails after touching the session."""

    def revoke_all_for_user(self, db, user_id, commit=True):
        super().revoke_all_for_user(db, user_id, commit=False)
        raise RuntimeError("refresh token store unavailable")


def _stored_hash(db, user_id):
    db.expire_all()
    return db.execute(select(User.hashed_password).where(User.id == user_id)).scalar_one()


def _active_tokens(db, user_id):
    db.expire_all()
    return db.execute(
        select(RefreshToken).where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
    ).scalars().all()


class TestChangePassword:
    def test_changes_password_and_revokes_sessions(self, db):
        registered = auth_service.register(db, email="a@x.com", password=PASSWORD)
        user_id = registered.user.id

        user_service.change_password(db, user_id, PASSWORD, NEW_PASSWORD)

        assert verify_password(NEW_PASSWORD, _stored_hash(db, user_id))
        assert _active_tokens(db, user_id) == []

    def test_wrong_current_password_changes_nothing(self, db):
        registered = auth_service.register(db, email="a@x.com", password=PASSWORD)
        user_id = registered.user.id

        with pytest.raises(IncorrectPassword):
            user_service.change_password(db, user_id, "Wrong1!pass", NEW_PASSWORD)

        assert verify_password(PASSWORD, _stored_hash(db, user_id))
        assert len(_active_tokens(db, user_id)) == 1

    def test_failed_revocation_keeps_old_password(self, db):
        registered = auth_service.register(db, email="a@x.com", password=PASSWORD)
        user_id = registered.user.id
        users = UserService(auth=AuthService(refresh_tokens=BrokenRevocationStore()))

        with pytest.raises(RuntimeError):
            users.change_password(db, user_id, PASSWORD, NEW_PASSWORD)

        assert verify_password(PASSWORD, _stored_hash(db, user_id))
        assert not verify_password(NEW_PASSWORD, _stored_hash(db, user_id))
        assert len(_active_tokens(db, user_id)) == 1
