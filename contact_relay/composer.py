"""Notification composer — renders a validated contact into an email."""

from __future__ import annotations

import html
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from email.utils import format_datetime, formataddr, make_msgid
from string import Template
from urllib.parse import quote
from zoneinfo import ZoneInfo

from .config import Settings
from .errors import MessageFormatError
from .models import ValidatedContact

_WEEKDAYS_PT = (
    "segunda-feira",
    "terça-feira",
    "quarta-feira",
    "quinta-feira",
    "sexta-feira",
    "sábado",
    "domingo",
)
_MONTHS_PT = (
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)


def format_long_pt(dt: datetime) -> str:
    """``segunda-feira, 19 de outubro de 2026 às 14:30``"""
    return (
        f"{_WEEKDAYS_PT[dt.weekday()]}, {dt.day} de {_MONTHS_PT[dt.month - 1]} "
        f"de {dt.year} às {dt:%H:%M}"
    )


def format_short_pt(dt: datetime) -> str:
    """``19/10/2026, 14:30:00``"""
    return f"{dt:%d/%m/%Y, %H:%M:%S}"


_HTML_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="pt-BR">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Nova Mensagem - Portfolio</title>
</head>
<body style="margin: 0; padding: 0; font-family: 'Segoe UI', Arial, sans-serif; background-color: #f5f5f5;">
  <div style="max-width: 600px; margin: 0 auto; background: white; border-radius: 10px; overflow: hidden;">
    <div style="background: linear-gradient(135deg, #00d8ff 0%, #0066cc 100%); padding: 30px 20px; text-align: center;">
      <h1 style="margin: 0; color: white; font-size: 28px;">Nova Mensagem do Portfolio</h1>
      <p style="margin: 10px 0 0 0; color: rgba(255,255,255,0.9); font-size: 16px;">Mensagem recebida em $received_at</p>
    </div>
    <div style="padding: 30px 20px;">
      <div style="background: #f8f9fa; border-radius: 8px; padding: 20px; margin-bottom: 25px; border-left: 4px solid #00d8ff;">
        <h2 style="margin: 0 0 15px 0; color: #333; font-size: 20px;">Informações do Contato</h2>
        <p style="margin: 0 0 12px 0;"><strong style="color: #555;">Nome:</strong> $name</p>
        <p style="margin: 0 0 12px 0;"><strong style="color: #555;">Email:</strong>
          <a href="mailto:$email" style="color: #00d8ff; text-decoration: none;">$email</a></p>
$subject_row
      </div>
      <div style="border: 2px solid #e9ecef; border-radius: 8px; overflow: hidden;">
        <div style="background: #00d8ff; color: white; padding: 12px 20px;">
          <h3 style="margin: 0; font-size: 18px;">Mensagem</h3>
        </div>
        <div style="padding: 20px; line-height: 1.7; color: #333; white-space: pre-wrap; font-size: 15px;">$message</div>
      </div>
      <div style="text-align: center; margin-top: 30px; padding: 25px; background: #f0f8ff; border-radius: 8px;">
        <p style="margin: 0 0 20px 0; color: #555; font-size: 16px;"><strong>Pronto para responder?</strong></p>
        <a href="$reply_href" style="display: inline-block; background: #00d8ff; color: white; padding: 15px 25px; text-decoration: none; border-radius: 25px; font-weight: 600;">Responder por Email</a>
$whatsapp_button
      </div>
    </div>
    <div style="background: #333; color: #ccc; text-align: center; padding: 20px; font-size: 12px;">
      <p style="margin: 0;">Esta mensagem foi enviada através do formulário de contato do portfolio</p>
$footer_extra
    </div>
  </div>
</body>
</html>
""")

_SUBJECT_ROW = Template(
    '        <p style="margin: 0;"><strong style="color: #555;">Assunto:</strong> $subject</p>'
)
_WHATSAPP_BUTTON = Template(
    '        <a href="$href" style="display: inline-block; background: #25d366; color: white; '
    'padding: 15px 25px; text-decoration: none; border-radius: 25px; font-weight: 600;">'
    "Responder por WhatsApp</a>"
)


@dataclass(frozen=True)
class Notification:
    """A composed notification, ready to hand to the outbound channel."""

    sender: str
    sender_name: str
    recipient: str
    reply_to: str
    subject: str
    html_body: str
    text_body: str
    received_at: datetime
    message_id: str

    def to_email_message(self) -> EmailMessage:
        """Build the MIME message (text part plus HTML alternative).

        Raises :class:`MessageFormatError` if a header cannot be encoded.
        """
        try:
            msg = EmailMessage()
            msg["From"] = formataddr((self.sender_name, self.sender))
            msg["To"] = self.recipient
            msg["Reply-To"] = self.reply_to
            msg["Subject"] = self.subject
            msg["Date"] = format_datetime(self.received_at)
            msg["Message-ID"] = self.message_id
            msg.set_content(self.text_body)
            msg.add_alternative(self.html_body, subtype="html")
        except (ValueError, TypeError) as exc:
            raise MessageFormatError(str(exc)) from exc
        return msg


class NotificationComposer:
    """Render a :class:`ValidatedContact` into a :class:`Notification`."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._zone = ZoneInfo(settings.timezone)

    def subject_for(self, contact: ValidatedContact) -> str:
        if contact.subject:
            return f"{contact.subject} - {contact.name}"
        return self._settings.default_subject.format(name=contact.name)

    def compose(self, contact: ValidatedContact, received_at: datetime) -> Notification:
        mail = self._settings.mail
        sender = mail.user or ""
        subject = self.subject_for(contact)
        local_time = received_at.astimezone(self._zone)
        domain = sender.rpartition("@")[2] or None

        return Notification(
            sender=sender,
            sender_name=mail.sender_name,
            recipient=mail.recipient or sender,
            reply_to=contact.email,
            subject=subject,
            html_body=self._render_html(contact, subject, local_time),
            text_body=self._render_text(contact, local_time),
            received_at=received_at,
            message_id=make_msgid(domain=domain),
        )

    # ------------------------------------------------------------------
    # Bodies
    # ------------------------------------------------------------------

    def _render_html(
        self,
        contact: ValidatedContact,
        subject: str,
        local_time: datetime,
    ) -> str:
        esc = html.escape
        greeting = f"Olá {contact.name},\n\nObrigado pelo seu contato!\n\n"
        reply_href = (
            f"mailto:{contact.email}"
            f"?subject={quote('Re: ' + subject)}&body={quote(greeting)}"
        )

        subject_row = ""
        if contact.subject:
            subject_row = _SUBJECT_ROW.substitute(subject=esc(contact.subject))

        whatsapp_button = ""
        if self._settings.whatsapp_number:
            text = (
                "Olá! Recebi sua mensagem através do portfolio. "
                f"Vamos conversar sobre: {contact.subject or 'seu projeto'}"
            )
            href = f"https://wa.me/{self._settings.whatsapp_number}?text={quote(text)}"
            whatsapp_button = _WHATSAPP_BUTTON.substitute(href=esc(href))

        footer_lines = []
        if self._settings.owner_name:
            footer_lines.append(
                f'      <p style="margin: 10px 0 0 0;"><strong style="color: #00d8ff;">'
                f"{esc(self._settings.owner_name)}</strong></p>"
            )
        if self._settings.site_url:
            url = esc(self._settings.site_url)
            footer_lines.append(
                f'      <p style="margin: 10px 0 0 0;"><a href="{url}" '
                f'style="color: #00d8ff; text-decoration: none;">{url}</a></p>'
            )

        return _HTML_TEMPLATE.substitute(
            received_at=esc(format_long_pt(local_time)),
            name=esc(contact.name),
            email=esc(contact.email),
            subject_row=subject_row,
            message=esc(contact.message),
            reply_href=esc(reply_href),
            whatsapp_button=whatsapp_button,
            footer_extra="\n".join(footer_lines),
        )

    def _render_text(self, contact: ValidatedContact, local_time: datetime) -> str:
        lines = [
            "NOVA MENSAGEM DO PORTFOLIO",
            "",
            f"Nome: {contact.name}",
            f"Email: {contact.email}",
        ]
        if contact.subject:
            lines.append(f"Assunto: {contact.subject}")
        lines += [
            f"Data: {format_short_pt(local_time)}",
            "",
            "MENSAGEM:",
            contact.message,
            "",
            "---",
            f"Responder para: {contact.email}",
        ]
        return "\n".join(lines)
