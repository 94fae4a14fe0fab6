"""Pydantic models for the remote user import contract."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StrictModel(BaseModel):
    """Base model with strict unknown-field rejection."""

    model_config = ConfigDict(extra="forbid")


class ImportUsersRequest(StrictModel):
    """Batch body; items stay loose so each user is validated on its own."""

    users: list[dict[str, Any]]


class ImportUsersResponse(StrictModel):
    """Counts reported for one processed batch."""

    successful: int = Field(ge=0)
    failed: int = Field(ge=0)
    errors: list[str] = Field(default_factory=list)


class ImportErrorResponse(StrictModel):
    """Body returned when the whole request is rejected."""

    error: str
    successful: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_message(cls, message: str) -> ImportErrorResponse:
        return cls(error=message, errors=[message])
