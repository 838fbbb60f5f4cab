"""ContactService — owns the pipeline components and their lifecycle."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping

import structlog

from .composer import NotificationComposer
from .config import Settings
from .dispatcher import NotificationDispatcher
from .errors import ChannelError, InvalidSubmission
from .intake import normalize, validate
from .models import Delivered, NotificationResult
from .smtp_client import AsyncSmtpClient

logger = structlog.get_logger()


class ContactService:
    """Normalize, validate and dispatch contact-form submissions.

    One instance per application, built by the app factory and started /
    stopped by the FastAPI lifespan.
    """

    def __init__(self, settings: Settings, client: AsyncSmtpClient | None = None) -> None:
        self._settings = settings
        self._client = client or AsyncSmtpClient(settings.mail)
        self._composer = NotificationComposer(settings)
        self._dispatcher = NotificationDispatcher(
            settings.mail,
            self._composer,
            self._client,
            expose_detail=not settings.is_production,
        )

        self._start_time: float = time.monotonic()
        self._probe_task: asyncio.Task | None = None
        self._email_verified: bool | None = None

        self._received: int = 0
        self._rejected: int = 0
        self._delivered: int = 0
        self._failed: int = 0

    # ------------------------------------------------------------------
    # Public properties (used by health checks)
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._start_time

    @property
    def email_configured(self) -> bool:
        return self._settings.mail.is_configured

    @property
    def email_verified(self) -> bool | None:
        """Outcome of the startup probe; ``None`` until it has run."""
        return self._email_verified

    @property
    def counters(self) -> dict[str, int]:
        return {
            "received": self._received,
            "rejected": self._rejected,
            "delivered": self._delivered,
            "failed": self._failed,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self._start_time = time.monotonic()
        mail = self._settings.mail
        logger.info(
            "contact_service_started",
            environment=self._settings.environment,
            email_configured=mail.is_configured,
            smtp_host=mail.host,
        )
        if mail.is_configured and mail.verify_on_startup:
            self._probe_task = asyncio.create_task(self._probe_mail_account())
        elif not mail.is_configured:
            logger.warning("email_not_configured")

    async def stop(self) -> None:
        if self._probe_task is not None and not self._probe_task.done():
            self._probe_task.cancel()
            try:
                await self._probe_task
            except asyncio.CancelledError:
                pass
        self._probe_task = None
        logger.info("contact_service_stopped", **self.counters)

    async def _probe_mail_account(self) -> None:
        try:
            await self._client.verify()
        except ChannelError as exc:
            self._email_verified = False
            logger.warning(
                "email_probe_failed",
                kind=exc.kind.value,
                error_code=exc.code,
                error=str(exc),
            )
        except Exception:
            self._email_verified = False
            logger.exception("email_probe_failed")
        else:
            self._email_verified = True
            logger.info("email_probe_succeeded", smtp_host=self._settings.mail.host)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def submit(self, payload: Mapping) -> NotificationResult:
        """Run one submission through the pipeline.

        Raises :class:`InvalidSubmission` when validation fails; delivery
        problems come back as a :class:`~contact_relay.models.Failed`.
        """
        self._received += 1
        submission = normalize(payload)
        logger.info(
            "submission_received",
            has_name=bool(submission.name),
            has_email=bool(submission.email),
            message_length=len(submission.message),
            has_subject=submission.subject is not None,
        )

        try:
            contact = validate(submission)
        except InvalidSubmission as exc:
            self._rejected += 1
            logger.info("submission_rejected", fields=exc.fields)
            raise

        result = await self._dispatcher.send(contact)
        if isinstance(result, Delivered):
            self._delivered += 1
        else:
            self._failed += 1
        return result
