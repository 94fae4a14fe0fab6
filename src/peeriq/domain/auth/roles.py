"""Role definitions for PeerIQ profiles."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Supported profile roles."""

    EMPLOYEE = "employee"
    EXPERT = "expert"
    MANAGEMENT = "management"
    ADMIN = "admin"
