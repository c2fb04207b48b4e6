import pytest

from app.core.exceptions import Forbidden, Unauthenticated
from app.core.policies import ANY_MEMBER, OWNER_ONLY, OWNER_OR_ADMIN, ROLE_POLICIES, allowed_roles
from app.crud import membership as membership_crud
from app.models import TenantRole
from app.services.access_control import (
    AuthContext,
    access_control_service,
    extract_bearer_token,
)
from app.services.auth import auth_service

PASSWORD = "Aa1!aaaa"


@pytest.fixture
def owner(db):
    return auth_service.register(db, email="owner@x.com", password=PASSWORD)


def _header(result):
    return f"Bearer {result.tokens.access_token}"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Bearer abc", "abc"),
        ("bearer abc", "abc"),
        ("Bearer   abc  ", "abc"),
        ("Basic abc", None),
        ("Bearer", None),
        ("Bearer ", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_bearer_token(value, expected):
    assert extract_bearer_token(value) == expected


def test_authenticate_resolves_context(db, owner):
    context = access_control_service.authenticate(db, _header(owner))

    assert context.user_id == owner.user.id
    assert context.tenant_id == owner.user.memberships[0].tenant_id
    assert context.role == TenantRole.OWNER


@pytest.mark.parametrize("header", [None, "", "Bearer garbage", "Token abc"])
def test_missing_or_invalid_token_is_unauthenticated(db, header):
    with pytest.raises(Unauthenticated):
        access_control_service.authenticate(db, header)


def test_refresh_token_is_not_accepted_as_access_token(db, owner):
    with pytest.raises(Unauthenticated):
        access_control_service.authenticate(db, f"Bearer {owner.tokens.refresh_token}")


def test_membership_removal_takes_effect_on_next_request(db, owner):
    tenant_id = owner.user.memberships[0].tenant_id
    member = auth_service.register(db, email="m@x.com", password=PASSWORD, tenant_id=tenant_id)
    access_control_service.authenticate(db, _header(member))

    membership_crud.delete(db, user_id=member.user.id, tenant_id=tenant_id)

    with pytest.raises(Unauthenticated):
        access_control_service.authenticate(db, _header(member))


def test_deleted_user_is_unauthenticated(db):
    member = auth_service.register(db, email="gone@x.com", password=PASSWORD)
    header = _header(member)
    db.delete(member.user)
    db.commit()

    with pytest.raises(Unauthenticated):
        access_control_service.authenticate(db, header)


def test_role_change_is_seen_on_next_request(db, owner):
    tenant_id = owner.user.memberships[0].tenant_id
    member = auth_service.register(db, email="m@x.com", password=PASSWORD, tenant_id=tenant_id)
    membership = membership_crud.get(db, member.user.id, tenant_id)

    membership_crud.update_role(db, membership=membership, role=TenantRole.ADMIN)

    assert access_control_service.authenticate(db, _header(member)).role == TenantRole.ADMIN


class TestPolicies:
    def test_policy_table(self):
        assert ROLE_POLICIES["tenant:delete"] == OWNER_ONLY
        for operation in (
            "tenant:update",
            "members:update_role",
            "members:remove",
            "invitations:create",
            "invitations:list",
            "invitations:revoke",
        ):
            assert ROLE_POLICIES[operation] == OWNER_OR_ADMIN

    def test_unlisted_operation_needs_membership_only(self):
        assert allowed_roles("items:list") == ANY_MEMBER

    @pytest.mark.parametrize(
        "role,operation,allowed",
        [
            (TenantRole.OWNER, "tenant:delete", True),
            (TenantRole.ADMIN, "tenant:delete", False),
            (TenantRole.MEMBER, "tenant:delete", False),
            (TenantRole.OWNER, "invitations:create", True),
            (TenantRole.ADMIN, "invitations:create", True),
            (TenantRole.MEMBER, "invitations:create", False),
            (TenantRole.MEMBER, "items:list", True),
        ],
    )
    def test_authorize(self, role, operation, allowed):
        context = AuthContext(user_id=1, tenant_id=1, role=role)

        if allowed:
            access_control_service.authorize(context, operation)
        else:
            with pytest.raises(Forbidden):
                access_control_service.authorize(context, operation)


def test_ensure_active_tenant():
    context = AuthContext(user_id=1, tenant_id=7, role=TenantRole.OWNER)

    access_control_service.ensure_active_tenant(context, 7)
    with pytest.raises(Forbidden):
        access_control_service.ensure_active_tenant(context, 8)
