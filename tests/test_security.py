import pytest
from pydantic import ValidationError

from app.core.security import (
    get_password_hash,
    hash_token,
    password_policy_violations,
    verify_password,
)
from app.schemas.auth import RegisterRequest
from app.utils.slug import generate_slug, slug_from_email, slugify


def test_password_hash_roundtrip():
    hashed = get_password_hash("Aa1!aaaa", rounds=4)

    assert hashed != "Aa1!aaaa"
    assert verify_password("Aa1!aaaa", hashed)
    assert not verify_password("Aa1!aaab", hashed)


def test_verify_password_rejects_malformed_hash():
    assert verify_password("Aa1!aaaa", "not-a-bcrypt-hash") is False


def test_hash_token_is_sha256_hex():
    digest = hash_token("some-token")

    assert len(digest) == 64
    assert digest == hash_token("some-token")
    assert digest != hash_token("some-token2")


@pytest.mark.parametrize(
    "password,missing",
    [
        ("Aa1!", "at least 8 characters"),
        ("aa1!aaaa", "one uppercase letter"),
        ("AA1!AAAA", "one lowercase letter"),
        ("Aa!aaaaa", "one number"),
        ("Aa1aaaaa", "one special character"),
    ],
)
def test_password_policy_reports_missing_rule(password, missing):
    assert missing in password_policy_violations(password)


def test_strong_password_passes_policy():
    assert password_policy_violations("Aa1!aaaa") == []


def test_register_request_rejects_weak_password():
    with pytest.raises(ValidationError):
        RegisterRequest(email="a@x.com", password="password")


def test_slugify_replaces_non_alphanumerics():
    assert slugify("John.Doe+work") == "john-doe-work"


def test_generated_slug_has_random_suffix():
    slug = generate_slug("Acme Inc")
    base, suffix = slug.rsplit("-", 1)

    assert base == "acme-inc"
    assert len(suffix) == 6
    assert suffix.isalnum() and suffix == suffix.lower()


def test_slug_from_email_uses_local_part():
    assert slug_from_email("jane.doe@example.com").startswith("jane-doe-")
