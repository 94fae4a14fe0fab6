"""Canonical forms for identity emails and bootstrap passwords."""

from __future__ import annotations


def canonical_email(email: str) -> str:
    """Return the form identities are stored and looked up by."""

    return email.strip().lower()


def require_email(email: str) -> str:
    canonical = canonical_email(email)
    if not canonical:
        raise ValueError("email cannot be blank")
    return canonical


def require_password(password: str) -> str:
    stripped = password.strip()
    if not stripped:
        raise ValueError("password cannot be blank")
    return stripped
