"""Contact relay configuration loaded from environment variables.

Uses pydantic-settings so every field can be overridden via env vars,
which is how the service is configured on the hosting platform.
"""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = [
    # Production
    "https://1lenin1dev.vercel.app",
    "https://1lenin1dev-flame.vercel.app",
    "https://leninfontella.github.io",
    # Local development
    "http://localhost:3000",
    "http://localhost:5500",
    "http://localhost:8080",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5500",
    "http://127.0.0.1:8080",
    # VS Code Live Server
    "http://localhost:5501",
    "http://localhost:5502",
    "http://127.0.0.1:5501",
    "http://127.0.0.1:5502",
]


class MailConfig(BaseSettings):
    """Outbound SMTP account settings."""

    model_config = SettingsConfigDict(env_prefix="EMAIL_")

    user: str | None = Field(
        default=None,
        description="SMTP login and sender address",
    )
    password: SecretStr | None = Field(
        default=None,
        description="SMTP password (for Gmail, an app password)",
    )
    to: str | None = Field(
        default=None,
        description="Operator mailbox receiving notifications (defaults to user)",
    )
    host: str = Field(default="smtp.gmail.com", description="SMTP server hostname")
    port: int = Field(default=465, description="SMTP server port")
    use_ssl: bool = Field(
        default=True,
        description="Connect with implicit TLS (SMTPS); set False for plain or STARTTLS",
    )
    starttls: bool = Field(
        default=False,
        description="Upgrade a plain connection with STARTTLS (ignored when use_ssl)",
    )
    timeout_seconds: float = Field(
        default=10.0,
        description="Upper bound for each verify/send call to the SMTP server",
    )
    sender_name: str = Field(
        default="Portfolio",
        description="Display name on the From header",
    )
    verify_on_startup: bool = Field(
        default=True,
        description="Probe the SMTP account in the background when the service starts",
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.user and self.password and self.password.get_secret_value())

    @property
    def recipient(self) -> str | None:
        return self.to or self.user


class Settings(BaseSettings):
    """Top-level settings for the contact relay.

    All env vars are prefixed with ``CONTACT_``, except the nested mail
    account which reads ``EMAIL_*``.
    Example: ``CONTACT_ENVIRONMENT=production``
    """

    model_config = SettingsConfigDict(env_prefix="CONTACT_")

    # --- Server -------------------------------------------------------------
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, description="Bind port")
    environment: str = Field(
        default="development",
        description="Deployment environment; 'production' hides error details",
    )
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(
        default=True,
        description="Use JSON log output (True for prod, False for dev)",
    )

    max_body_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Largest request body accepted by POST /enviar-email",
    )

    # --- CORS ---------------------------------------------------------------
    cors_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS),
        description="Origins allowed to call the API from a browser",
    )

    # --- Notification -------------------------------------------------------
    timezone: str = Field(
        default="America/Sao_Paulo",
        description="IANA time zone used for timestamps in the notification",
    )
    default_subject: str = Field(
        default="Portfolio Contato - {name}",
        description="Subject used when the sender leaves it empty; {name} is substituted",
    )
    owner_name: str | None = Field(
        default=None,
        description="Operator name shown in the notification footer",
    )
    site_url: str | None = Field(
        default=None,
        description="Site URL shown in the notification footer",
    )
    whatsapp_number: str | None = Field(
        default=None,
        description="Operator WhatsApp number (digits only) for the reply button",
    )

    mail: MailConfig = Field(default_factory=MailConfig)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"
