"""Tests for the HTTP surface (contact_relay.app and routers)."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from contact_relay.app import create_app
from contact_relay.config import Settings
from contact_relay.errors import ChannelAuthError, ChannelConnectivityError, MessageFormatError
from contact_relay.service import ContactService

from tests.conftest import make_payload


@pytest.fixture
def app(service: ContactService):
    return create_app(service=service)


def _client(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


class TestSendEmail:
    @pytest.mark.asyncio
    async def test_success(self, app, smtp_client):
        async with _client(app) as client:
            resp = await client.post("/enviar-email", json=make_payload(assunto="Orçamento"))

        assert resp.status_code == 200
        data = resp.json()
        assert data["sucesso"] is True
        assert data["mensagem"] == "Mensagem enviada com sucesso! Obrigado pelo contato."
        sent = smtp_client.send.call_args.args[0]
        assert data["messageId"] == sent["Message-ID"]
        assert data["timestamp"]
        assert data["processTime"].endswith("ms")

    @pytest.mark.asyncio
    async def test_english_field_names(self, app):
        async with _client(app) as client:
            resp = await client.post("/enviar-email", json={
                "name": "Bob",
                "email": "bob@example.com",
                "message": "Hello there, I need a quote.",
            })
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_urlencoded_form(self, app, smtp_client):
        async with _client(app) as client:
            resp = await client.post("/enviar-email", data=make_payload(assunto="Orçamento"))

        assert resp.status_code == 200
        assert resp.json()["sucesso"] is True
        sent = smtp_client.send.call_args.args[0]
        assert sent["Reply-To"] == "ana@example.com"
        assert sent["Subject"] == "Orçamento - Ana"

    @pytest.mark.asyncio
    async def test_multipart_form(self, app, smtp_client):
        async with _client(app) as client:
            resp = await client.post(
                "/enviar-email",
                data=make_payload(),
                files={"anexo": ("cv.txt", b"hello", "text/plain")},
            )

        assert resp.status_code == 200
        smtp_client.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_form_validation_errors(self, app):
        async with _client(app) as client:
            resp = await client.post("/enviar-email", data={"nome": "Ana", "email": "x"})

        assert resp.status_code == 400
        assert resp.json()["errors"] == [
            "Email inválido",
            "Mensagem deve ter pelo menos 10 caracteres",
        ]

    @pytest.mark.asyncio
    async def test_body_too_large(self, settings: Settings, smtp_client):
        small = settings.model_copy(update={"max_body_bytes": 200})
        app = create_app(service=ContactService(small, client=smtp_client))
        async with _client(app) as client:
            resp = await client.post(
                "/enviar-email", json=make_payload(mensagem="x" * 500)
            )

        assert resp.status_code == 413
        data = resp.json()
        assert data["sucesso"] is False
        assert data["mensagem"] == "Corpo da requisição muito grande"
        assert "errors" not in data
        smtp_client.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_validation_errors_aggregated(self, app, smtp_client):
        async with _client(app) as client:
            resp = await client.post(
                "/enviar-email",
                json=make_payload(nome="A", email="not-an-email", mensagem="curta"),
            )

        assert resp.status_code == 400
        data = resp.json()
        assert data["sucesso"] is False
        assert data["errors"] == [
            "Nome deve ter pelo menos 2 caracteres",
            "Email inválido",
            "Mensagem deve ter pelo menos 10 caracteres",
        ]
        assert data["mensagem"].startswith("Dados inválidos: ")
        smtp_client.send.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b""])
    async def test_body_must_be_json_object(self, app, body: bytes):
        async with _client(app) as client:
            resp = await client.post(
                "/enviar-email",
                content=body,
                headers={"Content-Type": "application/json"},
            )
        assert resp.status_code == 400
        data = resp.json()
        assert data["sucesso"] is False
        assert data["mensagem"] == "Corpo da requisição inválido: envie um objeto JSON"
        assert "errors" not in data

    @pytest.mark.asyncio
    async def test_auth_failure(self, app, smtp_client):
        smtp_client.verify = AsyncMock(side_effect=ChannelAuthError("535"))
        async with _client(app) as client:
            resp = await client.post("/enviar-email", json=make_payload())

        assert resp.status_code == 500
        data = resp.json()
        assert data["sucesso"] is False
        assert data["error_code"] == "EAUTH"
        assert data["mensagem"] == "Erro de autenticação do email - Verifique credenciais"
        smtp_client.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_connectivity_failure(self, app, smtp_client):
        smtp_client.send = AsyncMock(side_effect=ChannelConnectivityError("reset"))
        async with _client(app) as client:
            resp = await client.post("/enviar-email", json=make_payload())

        assert resp.status_code == 500
        data = resp.json()
        assert data["error_code"] == "ECONNECTION"
        assert data["mensagem"] == "Erro de conexão com servidor de email"

    @pytest.mark.asyncio
    async def test_format_failure_is_400(self, app, smtp_client):
        smtp_client.send = AsyncMock(side_effect=MessageFormatError("554"))
        async with _client(app) as client:
            resp = await client.post("/enviar-email", json=make_payload())
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "EMESSAGE"

    @pytest.mark.asyncio
    async def test_detail_shown_outside_production(self, app, smtp_client):
        smtp_client.send = AsyncMock(side_effect=RuntimeError("stack details"))
        async with _client(app) as client:
            resp = await client.post("/enviar-email", json=make_payload())
        assert resp.status_code == 500
        assert resp.json()["detail"] == "RuntimeError: stack details"

    @pytest.mark.asyncio
    async def test_detail_hidden_in_production(self, settings: Settings, smtp_client):
        prod = settings.model_copy(update={"environment": "production"})
        app = create_app(service=ContactService(prod, client=smtp_client))
        smtp_client.send = AsyncMock(side_effect=RuntimeError("stack details"))
        async with _client(app) as client:
            resp = await client.post("/enviar-email", json=make_payload())
        data = resp.json()
        assert data["error_code"] == "UNKNOWN"
        assert "detail" not in data

    @pytest.mark.asyncio
    async def test_unconfigured_mail(self, unconfigured_mail, smtp_client):
        app = create_app(service=ContactService(Settings(mail=unconfigured_mail), client=smtp_client))
        async with _client(app) as client:
            resp = await client.post("/enviar-email", json=make_payload())
        assert resp.status_code == 500
        data = resp.json()
        assert data["error_code"] == "ECONFIG"
        assert data["mensagem"] == "Servidor não configurado para envio de emails"


class TestStatusEndpoints:
    @pytest.mark.asyncio
    async def test_health(self, app):
        async with _client(app) as client:
            resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "HEALTHY"
        assert data["email_configured"] is True
        assert isinstance(data["uptime"], int)
        assert data["environment"] == "development"
        assert data["submissions"]["received"] == 0

    @pytest.mark.asyncio
    async def test_health_counts_submissions(self, app):
        async with _client(app) as client:
            await client.post("/enviar-email", json=make_payload())
            await client.post("/enviar-email", json=make_payload(nome=""))
            resp = await client.get("/health")
        assert resp.json()["submissions"] == {
            "received": 2,
            "rejected": 1,
            "delivered": 1,
            "failed": 0,
        }

    @pytest.mark.asyncio
    async def test_health_unconfigured(self, unconfigured_mail):
        app = create_app(Settings(mail=unconfigured_mail))
        async with _client(app) as client:
            resp = await client.get("/health")
        assert resp.json()["email_configured"] is False

    @pytest.mark.asyncio
    async def test_root(self, app):
        async with _client(app) as client:
            resp = await client.get("/")
        data = resp.json()
        assert data["status"] == "FUNCIONANDO"
        assert data["endpoints"]["email"] == "POST /enviar-email"

    @pytest.mark.asyncio
    async def test_cors_echo(self, app):
        async with _client(app) as client:
            resp = await client.get("/test", headers={"Origin": "http://localhost:5500"})
        data = resp.json()
        assert data["origin"] == "http://localhost:5500"
        assert data["method"] == "GET"

    @pytest.mark.asyncio
    async def test_unknown_route(self, app):
        async with _client(app) as client:
            resp = await client.get("/nope")
        assert resp.status_code == 404
        data = resp.json()
        assert data["sucesso"] is False
        assert data["path"] == "/nope"
        assert "POST /enviar-email" in data["available_endpoints"]


class TestCors:
    @pytest.mark.asyncio
    async def test_preflight_allowed_origin(self, app):
        async with _client(app) as client:
            resp = await client.options(
                "/enviar-email",
                headers={
                    "Origin": "https://1lenin1dev.vercel.app",
                    "Access-Control-Request-Method": "POST",
                    "Access-Control-Request-Headers": "Content-Type",
                },
            )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "https://1lenin1dev.vercel.app"
        assert resp.headers["access-control-allow-credentials"] == "true"

    @pytest.mark.asyncio
    async def test_preflight_unknown_origin_rejected(self, app):
        async with _client(app) as client:
            resp = await client.options(
                "/enviar-email",
                headers={
                    "Origin": "https://evil.example",
                    "Access-Control-Request-Method": "POST",
                },
            )
        assert resp.status_code == 400
        assert "access-control-allow-origin" not in resp.headers


class TestLifespan:
    def test_lifespan_starts_and_stops_service(self, service: ContactService):
        service.start = AsyncMock()
        service.stop = AsyncMock()
        app = create_app(service=service)
        with TestClient(app) as client:
            assert client.get("/health").status_code == 200
            service.start.assert_awaited_once()
        service.stop.assert_awaited_once()

    def test_unhandled_error_returns_json_500(self, service: ContactService):
        app = create_app(service=service)

        @app.get("/boom")
        async def boom():
            raise RuntimeError("boom")

        client = TestClient(app, raise_server_exceptions=False)
        resp = client.get("/boom")
        assert resp.status_code == 500
        data = resp.json()
        assert data["sucesso"] is False
        assert data["mensagem"] == "Erro interno do servidor"
        assert "error_id" in data
