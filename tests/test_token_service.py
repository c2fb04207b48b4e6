from datetime import timedelta

import pytest
from jose import jwt

from app.core.config import settings
from app.core.exceptions import InvalidTokenError
from app.core.security import hash_token
from app.crud import refresh_token as refresh_token_crud
from app.services.auth import auth_service
from app.services.token import TokenService, token_service
from app.utils.timeutils import ensure_utc, utcnow

PASSWORD = "Aa1!aaaa"


@pytest.fixture
def registered(db):
    return auth_service.register(db, email="owner@x.com", password=PASSWORD, first_name="Olivia")


def test_pair_carries_user_and_tenant_claims(db, registered):
    tenant_id = registered.user.memberships[0].tenant_id

    access = token_service.verify_access_token(registered.tokens.access_token)
    refresh = token_service.verify_refresh_token(registered.tokens.refresh_token)

    assert access.user_id == refresh.user_id == registered.user.id
    assert access.tenant_id == refresh.tenant_id == tenant_id


def test_claim_names(registered):
    claims = jwt.get_unverified_claims(registered.tokens.access_token)

    assert claims["sub"] == str(registered.user.id)
    assert isinstance(claims["tenantId"], int)
    assert {"iat", "exp", "jti"} <= set(claims)


def test_access_and_refresh_use_different_secrets(registered):
    with pytest.raises(InvalidTokenError):
        token_service.verify_access_token(registered.tokens.refresh_token)
    with pytest.raises(InvalidTokenError):
        token_service.verify_refresh_token(registered.tokens.access_token)


def test_refresh_token_outlives_access_token(registered):
    access = token_service.verify_access_token(registered.tokens.access_token)
    refresh = token_service.verify_refresh_token(registered.tokens.refresh_token)

    assert access.expires_at - access.issued_at == timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    assert refresh.expires_at - refresh.issued_at == timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)


def test_stored_expiry_matches_exp_claim(db, registered):
    payload = token_service.verify_refresh_token(registered.tokens.refresh_token)
    record = refresh_token_crud.get_by_token(db, registered.tokens.refresh_token)

    assert ensure_utc(record.expires_at) == payload.expires_at
    assert record.revoked is False


def test_two_pairs_in_same_second_do_not_collide(db, registered):
    user_id = registered.user.id
    tenant_id = registered.user.memberships[0].tenant_id

    first = token_service.issue_token_pair(db, user_id, tenant_id)
    second = token_service.issue_token_pair(db, user_id, tenant_id)

    assert first.refresh_token != second.refresh_token
    assert hash_token(first.refresh_token) != hash_token(second.refresh_token)


def test_expired_token_is_rejected(db, registered):
    past = TokenService(clock=lambda: utcnow() - timedelta(days=60))
    tokens = past.issue_token_pair(db, registered.user.id, registered.user.memberships[0].tenant_id)

    with pytest.raises(InvalidTokenError):
        token_service.verify_access_token(tokens.access_token)
    with pytest.raises(InvalidTokenError):
        token_service.verify_refresh_token(tokens.refresh_token)


def test_forged_and_garbage_tokens_are_rejected(registered):
    claims = jwt.get_unverified_claims(registered.tokens.access_token)
    forged = jwt.encode(claims, "not-the-secret", algorithm=settings.ALGORITHM)

    with pytest.raises(InvalidTokenError):
        token_service.verify_access_token(forged)
    with pytest.raises(InvalidTokenError):
        token_service.verify_access_token("garbage")


def test_malformed_payload_is_rejected():
    now = utcnow()
    token = jwt.encode(
        {"sub": "not-a-number", "iat": now, "exp": now + timedelta(minutes=5)},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )

    with pytest.raises(InvalidTokenError):
        token_service.verify_access_token(token)
