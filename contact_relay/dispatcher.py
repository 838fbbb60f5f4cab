"""NotificationDispatcher — compose, pre-check, send, and classify the outcome."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import structlog

from .composer import NotificationComposer
from .config import MailConfig
from .errors import ChannelError, ErrorKind, MailNotConfigured
from .models import Delivered, Failed, NotificationResult, ValidatedContact, utcnow
from .smtp_client import AsyncSmtpClient

logger = structlog.get_logger()


class NotificationDispatcher:
    """Deliver one notification per call to the operator mailbox.

    A single best-effort attempt: no retry, no queueing.  Every failure is
    returned as a :class:`Failed` result; nothing is raised to the caller.
    """

    def __init__(
        self,
        config: MailConfig,
        composer: NotificationComposer,
        client: AsyncSmtpClient,
        *,
        expose_detail: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._config = config
        self._composer = composer
        self._client = client
        self._expose_detail = expose_detail
        self._clock = clock

    async def send(self, contact: ValidatedContact) -> NotificationResult:
        try:
            if not self._config.is_configured:
                raise MailNotConfigured("mail account credentials are missing")

            notification = self._composer.compose(contact, self._clock())
            message = notification.to_email_message()

            await self._client.verify()
            await self._client.send(message)
        except ChannelError as exc:
            return self._failed(exc.kind, exc.code, exc)
        except Exception as exc:
            return self._failed(ErrorKind.UNKNOWN, "UNKNOWN", exc)

        logger.info(
            "notification_delivered",
            message_id=notification.message_id,
            recipient=notification.recipient,
        )
        return Delivered(message_id=notification.message_id, timestamp=self._clock())

    def _failed(self, kind: ErrorKind, code: str, exc: BaseException) -> Failed:
        if kind is ErrorKind.UNKNOWN:
            logger.exception("notification_failed", kind=kind.value, error_code=code)
        else:
            logger.error(
                "notification_failed",
                kind=kind.value,
                error_code=code,
                error=str(exc),
            )
        return Failed(
            kind=kind,
            error_code=code,
            timestamp=self._clock(),
            detail=f"{type(exc).__name__}: {exc}" if self._expose_detail else None,
        )
