import re
import secrets
import string

_ALPHABET = string.ascii_lowercase + string.digits


def slugify(value: str) -> str:
    """Lower-case and replace every character outside [a-z0-9] with '-'."""
    return re.sub(r"[^a-z0-9]", "-", value.lower())


def generate_slug(base: str, suffix_length: int = 6) -> str:
    """
    Build a tenant slug from `base` plus a random base36 suffix.

    The suffix makes the slug unique in practice without a lookup; the
    unique index on tenant.slug is the final guard.
    """
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(suffix_length))
    return f"{slugify(base) or 'tenant'}-{suffix}"


def slug_from_email(email: str) -> str:
    return generate_slug(email.split("@")[0])
