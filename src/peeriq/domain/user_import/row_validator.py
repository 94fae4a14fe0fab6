"""Validation of one bulk-import row into a normalized user record."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from peeriq.domain.auth.credentials import canonical_email
from peeriq.domain.auth.roles import Role

REQUIRED_COLUMNS = ("name", "email", "department", "role")
OPTIONAL_COLUMNS = ("expertise",)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_VALID_ROLES_TEXT = ", ".join(role.value for role in Role)


@dataclass(frozen=True)
class ImportUserRecord:
    """Normalized user row ready to be submitted for import."""

    name: str
    email: str
    department: str
    role: Role
    expertise: tuple[str, ...] = ()

    def to_payload(self) -> dict[str, object]:
        """Return the JSON-ready shape sent to the import service."""

        return {
            "name": self.name,
            "email": self.email,
            "department": self.department,
            "role": self.role.value,
            "expertise": list(self.expertise),
        }


@dataclass(frozen=True)
class RowValidationError:
    """Validation failure for one row, numbered from 1 excluding the header."""

    row_number: int
    message: str

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.message}"


def validate_import_row(
    raw_row: Mapping[str, object],
    row_number: int,
) -> ImportUserRecord | RowValidationError:
    """Validate one raw row and return the normalized record or the first failure."""

    name = _clean_text(raw_row.get("name"))
    email = canonical_email(_clean_text(raw_row.get("email")))
    department = _clean_text(raw_row.get("department"))
    role_raw = _clean_text(raw_row.get("role")).lower()

    if not name:
        return RowValidationError(row_number=row_number, message="Name is required")
    if not email:
        return RowValidationError(row_number=row_number, message="Email is required")
    if not department:
        return RowValidationError(row_number=row_number, message="Department is required")
    if not role_raw:
        return RowValidationError(row_number=row_number, message="Role is required")

    if _EMAIL_PATTERN.match(email) is None:
        return RowValidationError(
            row_number=row_number,
            message=f"Invalid email format: {email}",
        )

    try:
        role = Role(role_raw)
    except ValueError:
        return RowValidationError(
            row_number=row_number,
            message=f'Invalid role "{role_raw}". Must be one of: {_VALID_ROLES_TEXT}',
        )

    return ImportUserRecord(
        name=name,
        email=email,
        department=department,
        role=role,
        expertise=parse_expertise(raw_row.get("expertise")),
    )


def parse_expertise(value: object) -> tuple[str, ...]:
    """Split comma-separated (or listed) expertise values, dropping blanks."""

    if value is None:
        return ()
    if isinstance(value, str):
        pieces: list[object] = list(value.split(","))
    elif isinstance(value, list | tuple):
        pieces = list(value)
    else:
        return ()
    return tuple(cleaned for cleaned in (_clean_text(piece) for piece in pieces) if cleaned)


def _clean_text(value: object) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()
