"""
PrismWatch Trigger Models.

Wire models for the PhotoPrism import endpoint and the outcome record
of one trigger attempt.
Requires Python 3.11+.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, field_validator


class TriggerRequest(BaseModel):
    """Request body sent to the import endpoint."""

    path: str = "/"
    move: bool = False


class TriggerResponse(BaseModel):
    """
    Response body returned by the import endpoint.

    ``code`` is an application-level status; only 200 means success,
    whatever the HTTP status line says. Fields are strictly typed, so a
    quoted or fractional code is a malformed body rather than a status.
    """

    model_config = ConfigDict(extra="ignore")

    code: StrictInt = 0
    error: StrictStr = ""
    message: StrictStr = ""

    @field_validator("error", "message", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        """Treat JSON null like an absent field."""
        return "" if v is None else v

    @property
    def ok(self) -> bool:
        return self.code == 200


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Outcome of a single trigger attempt."""

    success: bool
    stage: str
    status_code: int | None = None
    code: int | None = None
    message: str = ""
    error: str | None = None
