"""Shared test fixtures for the contact relay test suite."""

from __future__ import annotations

import os
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from contact_relay.config import MailConfig, Settings
from contact_relay.models import ValidatedContact
from contact_relay.service import ContactService
from contact_relay.smtp_client import AsyncSmtpClient

FIXED_NOW = datetime(2026, 10, 19, 17, 30, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep the developer's real mail account out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith(("EMAIL_", "CONTACT_")):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mail_config() -> MailConfig:
    return MailConfig(
        user="owner@example.com",
        password="app-password",
        host="smtp.test.com",
        port=465,
        timeout_seconds=1.0,
        sender_name="Portfolio",
        verify_on_startup=False,
    )


@pytest.fixture
def unconfigured_mail() -> MailConfig:
    return MailConfig(verify_on_startup=False)


@pytest.fixture
def settings(mail_config: MailConfig) -> Settings:
    return Settings(
        environment="development",
        log_json=False,
        owner_name="Lênin Fontella",
        site_url="https://example.dev",
        whatsapp_number="5551999990000",
        mail=mail_config,
    )


@pytest.fixture
def contact() -> ValidatedContact:
    return ValidatedContact(
        name="Ana",
        email="ana@example.com",
        message="Olá, gostaria de um orçamento.",
        subject="Orçamento",
    )


@pytest.fixture
def smtp_client(mail_config: MailConfig) -> MagicMock:
    """An AsyncSmtpClient stand-in whose verify/send succeed."""
    client = MagicMock(spec=AsyncSmtpClient)
    client.config = mail_config
    client.verify = AsyncMock(return_value=None)
    client.send = AsyncMock(return_value={})
    return client


@pytest.fixture
def service(settings: Settings, smtp_client: MagicMock) -> ContactService:
    return ContactService(settings, client=smtp_client)


# ------------------------------------------------------------------
# Sample payloads
# ------------------------------------------------------------------


def make_payload(
    *,
    nome: str | None = "Ana",
    email: str | None = "ana@example.com",
    mensagem: str | None = "Olá, gostaria de um orçamento.",
    assunto: str | None = None,
    **extra,
) -> dict:
    """Build a form payload using the site's own (Portuguese) field names."""
    payload = {"nome": nome, "email": email, "mensagem": mensagem}
    if assunto is not None:
        payload["assunto"] = assunto
    payload.update(extra)
    return {k: v for k, v in payload.items() if v is not None}
