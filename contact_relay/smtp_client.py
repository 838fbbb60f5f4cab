"""Async SMTP client wrapping stdlib smtplib with asyncio.to_thread."""

from __future__ import annotations

import asyncio
import smtplib
import socket
import ssl
from collections.abc import Callable
from email.message import EmailMessage
from typing import TypeVar

import structlog

from .config import MailConfig
from .errors import (
    ChannelAuthError,
    ChannelConnectivityError,
    MailNotConfigured,
    MessageFormatError,
)

logger = structlog.get_logger()

T = TypeVar("T")

# Steps of one SMTP conversation, in order.
PHASE_CONNECT = "connect"
PHASE_STARTTLS = "starttls"
PHASE_LOGIN = "login"
PHASE_SEND = "send"


def translate_smtp_error(exc: BaseException, phase: str = PHASE_CONNECT) -> BaseException:
    """Map an smtplib / socket exception onto the channel error taxonomy.

    *phase* is the conversation step that raised; it decides what an
    ``SMTPNotSupportedError`` means (missing AUTH, STARTTLS or SMTPUTF8).
    Exceptions with no channel meaning are returned unchanged.
    """
    # SMTPException subclasses OSError, so the specific SMTP types go first.
    if isinstance(exc, smtplib.SMTPAuthenticationError):
        return ChannelAuthError(str(exc))
    if isinstance(exc, smtplib.SMTPNotSupportedError):
        if phase == PHASE_LOGIN:
            return ChannelAuthError(str(exc))
        if phase == PHASE_SEND:
            return MessageFormatError(str(exc))
        return ChannelConnectivityError(str(exc))
    if isinstance(exc, (smtplib.SMTPRecipientsRefused, smtplib.SMTPSenderRefused)):
        return MessageFormatError(str(exc), code="EENVELOPE")
    if isinstance(exc, smtplib.SMTPDataError):
        return MessageFormatError(str(exc))
    if isinstance(exc, TimeoutError):
        return ChannelConnectivityError(str(exc) or "timed out", code="ETIMEDOUT")
    if isinstance(
        exc,
        (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected, smtplib.SMTPHeloError),
    ):
        return ChannelConnectivityError(str(exc))
    if isinstance(exc, smtplib.SMTPException):
        return exc
    if isinstance(exc, OSError):
        return ChannelConnectivityError(str(exc))
    return exc


class _Session:
    """State of one SMTP conversation, shared by the worker thread and the loop.

    The thread records each step with :meth:`enter`; the loop calls
    :meth:`abort` once the deadline passes, which shuts the socket down and
    stops the thread from starting any further step.
    """

    def __init__(self) -> None:
        self.phase = PHASE_CONNECT
        self.conn: smtplib.SMTP | None = None
        self.aborted = False

    def enter(self, phase: str) -> None:
        if self.aborted:
            raise TimeoutError(f"deadline passed before {phase}")
        self.phase = phase

    def abort(self) -> None:
        self.aborted = True
        sock = getattr(self.conn, "sock", None)
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass


class AsyncSmtpClient:
    """Async-friendly SMTP client.

    Every blocking ``smtplib`` operation runs in a worker thread via
    ``asyncio.to_thread()``.  Each socket operation is bounded by
    ``timeout_seconds`` and so is the whole call: past that deadline the
    connection is shut down and the call waits for the thread to finish,
    so a reported failure never hides a message that went out.  Each call
    opens its own connection and closes it before returning.
    """

    def __init__(self, config: MailConfig) -> None:
        self._config = config

    @property
    def config(self) -> MailConfig:
        return self._config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def verify(self) -> None:
        """Connect and authenticate without sending anything."""
        await self._run(self._verify_sync)
        logger.debug("smtp_verified", host=self._config.host, port=self._config.port)

    async def send(self, message: EmailMessage) -> dict[str, tuple[int, bytes]]:
        """Submit *message*; returns the recipients the server refused."""
        refused = await self._run(self._send_sync, message)
        logger.debug(
            "smtp_message_sent",
            host=self._config.host,
            message_id=message["Message-ID"],
            refused=len(refused),
        )
        return refused

    # ------------------------------------------------------------------
    # Thread dispatch
    # ------------------------------------------------------------------

    async def _run(self, fn: Callable[..., T], *args) -> T:
        if not self._config.is_configured:
            raise MailNotConfigured("EMAIL_USER / EMAIL_PASSWORD not set")

        session = _Session()
        task = asyncio.ensure_future(asyncio.to_thread(fn, session, *args))
        try:
            done, _ = await asyncio.wait({task}, timeout=self._config.timeout_seconds)
        except asyncio.CancelledError:
            session.abort()
            raise
        if not done:
            logger.warning(
                "smtp_deadline_exceeded",
                host=self._config.host,
                phase=session.phase,
                timeout_seconds=self._config.timeout_seconds,
            )
            session.abort()

        try:
            return await task
        except Exception as exc:
            if session.aborted:
                raise ChannelConnectivityError(
                    f"SMTP {session.phase} exceeded {self._config.timeout_seconds}s",
                    code="ETIMEDOUT",
                ) from exc
            translated = translate_smtp_error(exc, session.phase)
            if translated is exc:
                raise
            raise translated from exc

    # ------------------------------------------------------------------
    # Synchronous helpers (run in thread)
    # ------------------------------------------------------------------

    def _open_sync(self, session: _Session) -> smtplib.SMTP:
        cfg = self._config
        context = ssl.create_default_context()
        conn: smtplib.SMTP
        session.enter(PHASE_CONNECT)
        if cfg.use_ssl:
            conn = smtplib.SMTP_SSL(
                cfg.host, cfg.port, timeout=cfg.timeout_seconds, context=context
            )
        else:
            conn = smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout_seconds)
        session.conn = conn
        try:
            if cfg.starttls and not cfg.use_ssl:
                session.enter(PHASE_STARTTLS)
                conn.starttls(context=context)
            session.enter(PHASE_LOGIN)
            assert cfg.user is not None and cfg.password is not None
            conn.login(cfg.user, cfg.password.get_secret_value())
        except BaseException:
            self._close_sync(conn)
            raise
        return conn

    def _close_sync(self, conn: smtplib.SMTP) -> None:
        try:
            conn.quit()
        except (smtplib.SMTPException, OSError):
            conn.close()

    def _verify_sync(self, session: _Session) -> None:
        conn = self._open_sync(session)
        self._close_sync(conn)

    def _send_sync(
        self, session: _Session, message: EmailMessage
    ) -> dict[str, tuple[int, bytes]]:
        conn = self._open_sync(session)
        try:
            session.enter(PHASE_SEND)
            return conn.send_message(message)
        finally:
            self._close_sync(conn)
