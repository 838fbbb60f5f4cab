"""Exception hierarchy for the contact pipeline.

The SMTP client raises the channel errors; the dispatcher catches them and
turns them into a :class:`~contact_relay.models.Failed` result, so none of
these reach the HTTP layer except :class:`InvalidSubmission`.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple


class ErrorKind(str, Enum):
    """Classification of a failed delivery."""

    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    CONNECTIVITY = "connectivity"
    MESSAGE_FORMAT = "message_format"
    UNKNOWN = "unknown"


class FailurePolicy(NamedTuple):
    status_code: int
    user_message: str


FAILURE_POLICIES: dict[ErrorKind, FailurePolicy] = {
    ErrorKind.CONFIGURATION: FailurePolicy(
        500, "Servidor não configurado para envio de emails"
    ),
    ErrorKind.AUTHENTICATION: FailurePolicy(
        500, "Erro de autenticação do email - Verifique credenciais"
    ),
    ErrorKind.CONNECTIVITY: FailurePolicy(500, "Erro de conexão com servidor de email"),
    ErrorKind.MESSAGE_FORMAT: FailurePolicy(400, "Erro na formatação da mensagem"),
    ErrorKind.UNKNOWN: FailurePolicy(500, "Erro interno do servidor"),
}


class FieldError(NamedTuple):
    field: str
    message: str


class ContactRelayError(Exception):
    """Base class for all contact relay errors."""


class InvalidSubmission(ContactRelayError):
    """One or more fields of a submission failed validation."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        super().__init__(", ".join(e.message for e in self.errors))

    @property
    def messages(self) -> list[str]:
        return [e.message for e in self.errors]

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


class ChannelError(ContactRelayError):
    """A failure talking to the outbound mail channel."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    default_code: str = "UNKNOWN"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code or self.default_code


class MailNotConfigured(ChannelError):
    kind = ErrorKind.CONFIGURATION
    default_code = "ECONFIG"


class ChannelAuthError(ChannelError):
    kind = ErrorKind.AUTHENTICATION
    default_code = "EAUTH"


class ChannelConnectivityError(ChannelError):
    kind = ErrorKind.CONNECTIVITY
    default_code = "ECONNECTION"


class MessageFormatError(ChannelError):
    kind = ErrorKind.MESSAGE_FORMAT
    default_code = "EMESSAGE"
