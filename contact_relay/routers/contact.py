"""Contact-form endpoint: POST /enviar-email."""

from __future__ import annotations

import json
import time

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from contact_relay.errors import InvalidSubmission
from contact_relay.models import (
    Delivered,
    DeliveredResponse,
    FailedResponse,
    RejectedResponse,
)
from contact_relay.service import ContactService

logger = structlog.get_logger()
router = APIRouter(tags=["contact"])

SUCCESS_MESSAGE = "Mensagem enviada com sucesso! Obrigado pelo contato."
INVALID_BODY_MESSAGE = "Corpo da requisição inválido: envie um objeto JSON"
BODY_TOO_LARGE_MESSAGE = "Corpo da requisição muito grande"

FORM_CONTENT_TYPES = frozenset(
    {"application/x-www-form-urlencoded", "multipart/form-data"}
)


class BodyTooLarge(Exception):
    pass


def _json(body, status_code: int) -> JSONResponse:
    return JSONResponse(
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        status_code=status_code,
    )


async def _read_payload(request: Request, max_bytes: int) -> object:
    """Return the decoded body: a dict for forms, any JSON value otherwise.

    Undecodable JSON comes back as ``None``.
    """
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > max_bytes:
        raise BodyTooLarge
    body = await request.body()
    if len(body) > max_bytes:
        raise BodyTooLarge

    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in FORM_CONTENT_TYPES:
        # Form services post the same field names; file parts are ignored
        # by intake since they are not strings.
        form = await request.form()
        return dict(form.items())

    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


@router.post("/enviar-email")
async def send_contact_email(request: Request) -> JSONResponse:
    """Validate a contact submission and relay it to the operator mailbox."""
    started = time.perf_counter()
    service: ContactService = request.app.state.service

    try:
        payload = await _read_payload(request, service.settings.max_body_bytes)
    except BodyTooLarge:
        logger.info("submission_body_too_large")
        return _json(RejectedResponse(message=BODY_TOO_LARGE_MESSAGE), 413)
    if not isinstance(payload, dict):
        logger.info("submission_body_invalid")
        return _json(RejectedResponse(message=INVALID_BODY_MESSAGE), 400)

    try:
        result = await service.submit(payload)
    except InvalidSubmission as exc:
        return _json(
            RejectedResponse(
                message="Dados inválidos: " + ", ".join(exc.messages),
                errors=exc.messages,
            ),
            400,
        )

    process_time = f"{round((time.perf_counter() - started) * 1000)}ms"

    if isinstance(result, Delivered):
        return _json(
            DeliveredResponse(
                message=SUCCESS_MESSAGE,
                message_id=result.message_id,
                timestamp=result.timestamp,
                process_time=process_time,
            ),
            200,
        )

    return _json(
        FailedResponse(
            message=result.user_message,
            error_code=result.error_code,
            timestamp=result.timestamp,
            process_time=process_time,
            detail=result.detail,
        ),
        result.status_code,
    )
