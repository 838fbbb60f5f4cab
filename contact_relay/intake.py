"""Intake — normalize raw form payloads and validate them.

Both steps are pure: no I/O, no logging.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

from .errors import FieldError, InvalidSubmission
from .models import Submission, ValidatedContact

# Canonical field -> accepted payload keys, in priority order.  The
# Portuguese keys come from the site's own form; the English ones from
# third-party form services posting to the same endpoint.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("nome", "name"),
    "email": ("email",),
    "message": ("mensagem", "message"),
    "subject": ("assunto", "subject"),
}

SINGLE_LINE_FIELDS = frozenset({"name", "email", "subject"})

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_NAME_LENGTH = 2
MIN_MESSAGE_LENGTH = 10

NAME_TOO_SHORT = "Nome deve ter pelo menos 2 caracteres"
INVALID_EMAIL = "Email inválido"
MESSAGE_TOO_SHORT = "Mensagem deve ter pelo menos 10 caracteres"


def _first_present(payload: Mapping, keys: Sequence[str]) -> str:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def _clean(field: str, value: str) -> str:
    if field in SINGLE_LINE_FIELDS:
        return " ".join(value.split())
    return value.strip()


def normalize(
    payload: Mapping,
    aliases: Mapping[str, Sequence[str]] = FIELD_ALIASES,
) -> Submission:
    """Collapse aliased payload keys into one canonical :class:`Submission`.

    The first non-blank string among a field's aliases wins; anything that
    is not a string is treated as absent.
    """
    values = {
        field: _clean(field, _first_present(payload, keys))
        for field, keys in aliases.items()
    }
    values["subject"] = values.get("subject") or None
    return Submission(**values)


def validate(submission: Submission) -> ValidatedContact:
    """Check every rule and raise :class:`InvalidSubmission` listing all violations."""
    name = submission.name.strip()
    email = submission.email.strip()
    message = submission.message.strip()
    subject = (submission.subject or "").strip()

    errors: list[FieldError] = []

    if len(name) < MIN_NAME_LENGTH:
        errors.append(FieldError("name", NAME_TOO_SHORT))

    if not EMAIL_PATTERN.match(email):
        errors.append(FieldError("email", INVALID_EMAIL))

    if len(message) < MIN_MESSAGE_LENGTH:
        errors.append(FieldError("message", MESSAGE_TOO_SHORT))

    if errors:
        raise InvalidSubmission(errors)

    return ValidatedContact(
        name=name,
        email=email,
        message=message,
        subject=subject or None,
    )
