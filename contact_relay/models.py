"""Data models for the contact pipeline and its HTTP responses."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import FAILURE_POLICIES, ErrorKind


def utcnow() -> datetime:
    return datetime.now(UTC)


class Submission(BaseModel):
    """Canonical shape of a contact-form payload, before validation.

    Built by :func:`contact_relay.intake.normalize`; values are untrusted.
    """

    name: str = ""
    email: str = ""
    message: str = ""
    subject: str | None = None


class ValidatedContact(BaseModel):
    """A submission that passed every intake rule."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    message: str
    subject: str | None = None


class Delivered(BaseModel):
    """The outbound channel accepted the notification."""

    model_config = ConfigDict(frozen=True)

    status: Literal["delivered"] = "delivered"
    message_id: str
    timestamp: datetime = Field(default_factory=utcnow)


class Failed(BaseModel):
    """The notification could not be delivered."""

    model_config = ConfigDict(frozen=True)

    status: Literal["failed"] = "failed"
    kind: ErrorKind
    error_code: str
    timestamp: datetime = Field(default_factory=utcnow)
    detail: str | None = Field(
        default=None,
        description="Diagnostic text; only filled outside production",
    )

    @property
    def status_code(self) -> int:
        return FAILURE_POLICIES[self.kind].status_code

    @property
    def user_message(self) -> str:
        return FAILURE_POLICIES[self.kind].user_message


NotificationResult = Delivered | Failed


# ------------------------------------------------------------------
# Response bodies for POST /enviar-email
# ------------------------------------------------------------------


class _ResponseBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(serialization_alias="sucesso")
    message: str = Field(serialization_alias="mensagem")
    timestamp: datetime = Field(default_factory=utcnow)


class DeliveredResponse(_ResponseBody):
    success: bool = Field(default=True, serialization_alias="sucesso")
    message_id: str = Field(serialization_alias="messageId")
    process_time: str = Field(serialization_alias="processTime")


class RejectedResponse(_ResponseBody):
    success: bool = Field(default=False, serialization_alias="sucesso")
    errors: list[str] | None = None


class FailedResponse(_ResponseBody):
    success: bool = Field(default=False, serialization_alias="sucesso")
    error_code: str
    process_time: str = Field(serialization_alias="processTime")
    detail: str | None = None
