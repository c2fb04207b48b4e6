"""Tests for registration, login, refresh and logout flows."""

import pytest
from sqlalchemy import func, select

from app.core.exceptions import (
    InvalidCredentials,
    InvalidRefreshToken,
    NoTenantAccess,
    TenantNotFound,
    UserAlreadyExists,
)
from app.core.security import hash_token
from app.crud import membership as membership_crud, refresh_token as refresh_token_crud
from app.models import RefreshToken, Tenant, TenantRole, TenantUser, User
from app.services.auth import LOGOUT_MESSAGE, auth_service
from app.services.token import token_service

PASSWORD = "Aa1!aaaa"


def _count(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar_one()


class TestRegister:
    def test_creates_workspace_with_single_owner(self, db):
        result = auth_service.register(db, email="a@x.com", password=PASSWORD, first_name="Ada")

        memberships = db.execute(select(TenantUser)).scalars().all()
        assert len(memberships) == 1
        assert memberships[0].user_id == result.user.id
        assert memberships[0].role == TenantRole.OWNER

        tenant = db.get(Tenant, memberships[0].tenant_id)
        assert tenant.name == "Ada's Workspace"
        assert tenant.slug.startswith("a-")

        payload = token_service.verify_access_token(result.tokens.access_token)
        assert payload.tenant_id == tenant.id

    def test_workspace_name_defaults_without_first_name(self, db):
        auth_service.register(db, email="a@x.com", password=PASSWORD)

        assert db.execute(select(Tenant.name)).scalar_one() == "User's Workspace"

    def test_duplicate_email_is_conflict(self, db):
        auth_service.register(db, email="a@x.com", password=PASSWORD)

        with pytest.raises(UserAlreadyExists):
            auth_service.register(db, email="a@x.com", password="Bb2@bbbb")

        assert _count(db, User) == 1

    def test_duplicate_email_ignores_case(self, db):
        auth_service.register(db, email="a@x.com", password=PASSWORD)

        with pytest.raises(UserAlreadyExists):
            auth_service.register(db, email="A@X.com", password=PASSWORD)

    def test_password_is_hashed(self, db):
        result = auth_service.register(db, email="a@x.com", password=PASSWORD)

        assert result.user.hashed_password != PASSWORD
        assert result.user.hashed_password.startswith("$2")

    def test_join_existing_tenant_as_member(self, db):
        owner = auth_service.register(db, email="owner@x.com", password=PASSWORD)
        tenant_id = owner.user.memberships[0].tenant_id

        joined = auth_service.register(db, email="m@x.com", password=PASSWORD, tenant_id=tenant_id)

        membership = membership_crud.get(db, joined.user.id, tenant_id)
        assert membership.role == TenantRole.MEMBER
        assert token_service.verify_access_token(joined.tokens.access_token).tenant_id == tenant_id
        assert _count(db, Tenant) == 1

    def test_unknown_tenant_rolls_back_everything(self, db):
        with pytest.raises(TenantNotFound):
            auth_service.register(db, email="m@x.com", password=PASSWORD, tenant_id=999)

        assert _count(db, User) == 0
        assert _count(db, TenantUser) == 0
        assert _count(db, RefreshToken) == 0


class TestLogin:
    def test_returns_tokens_for_first_membership(self, db):
        first = auth_service.register(db, email="a@x.com", password=PASSWORD)
        first_tenant = first.user.memberships[0].tenant_id
        other = auth_service.register(db, email="b@x.com", password=PASSWORD)
        other_tenant = other.user.memberships[0].tenant_id
        membership_crud.create(db, user_id=first.user.id, tenant_id=other_tenant, role=TenantRole.MEMBER)

        tokens = auth_service.login(db, email="a@x.com", password=PASSWORD)

        assert token_service.verify_access_token(tokens.access_token).tenant_id == first_tenant

    def test_wrong_password_and_unknown_email_look_the_same(self, db):
        auth_service.register(db, email="a@x.com", password=PASSWORD)

        with pytest.raises(InvalidCredentials) as wrong_password:
            auth_service.login(db, email="a@x.com", password="Wrong1!pass")
        with pytest.raises(InvalidCredentials) as unknown_email:
            auth_service.login(db, email="nobody@x.com", password=PASSWORD)

        assert wrong_password.value.message == unknown_email.value.message

    def test_user_without_memberships_has_no_tenant_access(self, db):
        result = auth_service.register(db, email="a@x.com", password=PASSWORD)
        tenant_id = result.user.memberships[0].tenant_id
        membership_crud.delete(db, user_id=result.user.id, tenant_id=tenant_id)

        with pytest.raises(NoTenantAccess):
            auth_service.login(db, email="a@x.com", password=PASSWORD)


class TestRefresh:
    def test_issues_new_pair_for_same_tenant(self, db):
        registered = auth_service.register(db, email="a@x.com", password=PASSWORD)

        tokens = auth_service.refresh(db, registered.tokens.refresh_token)

        old = token_service.verify_refresh_token(registered.tokens.refresh_token)
        new = token_service.verify_access_token(tokens.access_token)
        assert (new.user_id, new.tenant_id) == (old.user_id, old.tenant_id)
        assert tokens.refresh_token != registered.tokens.refresh_token

    def test_reused_refresh_token_is_rejected(self, db):
        registered = auth_service.register(db, email="a@x.com", password=PASSWORD)
        rotated = auth_service.refresh(db, registered.tokens.refresh_token)

        with pytest.raises(InvalidRefreshToken):
            auth_service.refresh(db, registered.tokens.refresh_token)

        # The replacement is still good
        assert auth_service.refresh(db, rotated.refresh_token).access_token

    def test_other_sessions_survive_rotation(self, db):
        registered = auth_service.register(db, email="a@x.com", password=PASSWORD)
        other_device = auth_service.login(db, email="a@x.com", password=PASSWORD)

        auth_service.refresh(db, registered.tokens.refresh_token)

        assert auth_service.refresh(db, other_device.refresh_token).access_token

    def test_revoked_by_logout_is_rejected(self, db):
        registered = auth_service.register(db, email="a@x.com", password=PASSWORD)

        auth_service.logout(db, registered.tokens.refresh_token)

        with pytest.raises(InvalidRefreshToken):
            auth_service.refresh(db, registered.tokens.refresh_token)

    def test_rejected_after_membership_removal(self, db):
        registered = auth_service.register(db, email="a@x.com", password=PASSWORD)
        tenant_id = registered.user.memberships[0].tenant_id
        membership_crud.delete(db, user_id=registered.user.id, tenant_id=tenant_id)

        with pytest.raises(InvalidRefreshToken):
            auth_service.refresh(db, registered.tokens.refresh_token)

    def test_rejected_after_user_deletion(self, db):
        registered = auth_service.register(db, email="a@x.com", password=PASSWORD)
        token = registered.tokens.refresh_token
        db.delete(registered.user)
        db.commit()

        with pytest.raises(InvalidRefreshToken):
            auth_service.refresh(db, token)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_garbage_is_rejected(self, db, token):
        with pytest.raises(InvalidRefreshToken):
            auth_service.refresh(db, token)

    def test_access_token_is_not_a_refresh_token(self, db):
        registered = auth_service.register(db, email="a@x.com", password=PASSWORD)

        with pytest.raises(InvalidRefreshToken):
            auth_service.refresh(db, registered.tokens.access_token)


class TestLogout:
    def test_same_response_for_any_input(self, db):
        registered = auth_service.register(db, email="a@x.com", password=PASSWORD)
        token = registered.tokens.refresh_token

        responses = [
            auth_service.logout(db, token),
            auth_service.logout(db, token),
            auth_service.logout(db, "garbage"),
            auth_service.logout(db, ""),
        ]

        assert all(response == {"message": LOGOUT_MESSAGE} for response in responses)
        assert refresh_token_crud.get_by_token(db, token).revoked is True

    def test_store_failure_is_swallowed(self, db):
        class BrokenStore:
            def revoke(self, db, token, commit=True):
                raise RuntimeError("database unavailable")

        service = type(auth_service)(refresh_tokens=BrokenStore())

        assert service.logout(db, "anything") == {"message": LOGOUT_MESSAGE}


def test_raw_refresh_tokens_are_never_stored(db):
    registered = auth_service.register(db, email="a@x.com", password=PASSWORD)
    login = auth_service.login(db, email="a@x.com", password=PASSWORD)
    raw_tokens = {registered.tokens.refresh_token, login.refresh_token}

    stored = db.execute(select(RefreshToken.token_hash)).scalars().all()

    assert len(stored) == 2
    assert raw_tokens.isdisjoint(stored)
    assert {hash_token(token) for token in raw_tokens} == set(stored)


def test_revoke_all_sessions(db):
    registered = auth_service.register(db, email="a@x.com", password=PASSWORD)
    auth_service.login(db, email="a@x.com", password=PASSWORD)

    assert auth_service.revoke_all_sessions(db, registered.user.id) == 2

    with pytest.raises(InvalidRefreshToken):
        auth_service.refresh(db, registered.tokens.refresh_token)
