"""
Transactional email dispatch.

Templates are rendered with jinja2 autoescaping, so user-supplied text
(names, comments, contact messages) cannot inject markup into the HTML body.
`NotificationDispatcher.send()` never raises for delivery problems; callers
decide whether a failed `DispatchResult` is fatal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape

from core import config

from .mailer import SmtpMailer

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


class Template(str, Enum):
    CONTACT_REQUEST = "contact_request"
    NEW_COMMENT = "new_comment"


class MailTransport(Protocol):
    async def send(self, message: EmailMessage) -> str | None: ...


@dataclass(frozen=True)
class DispatchResult:
    ok: bool
    recipient: str
    message_id: str | None = None
    error: str | None = None


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def _header_safe(value: str) -> str:
    # Email headers may not contain line breaks.
    return " ".join(str(value).split())


class NotificationDispatcher:
    def __init__(self, transport: MailTransport, *, sender_address: str, sender_name: str = "") -> None:
        self.transport = transport
        self.sender_address = sender_address
        self.sender_name = sender_name
        self._env = _environment()

    def render(self, template: Template, fields: dict[str, Any]) -> tuple[str, str]:
        """
        Return (html, text) bodies for `template`.
        """
        html_body = self._env.get_template(f"{template.value}.html").render(**fields)
        text_body = self._env.get_template(f"{template.value}.txt").render(**fields)
        return html_body, text_body

    def build_message(self, recipient: str, subject: str, html_body: str, text_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.sender_name, self.sender_address))
        message["To"] = recipient
        message["Subject"] = _header_safe(subject)
        message["Message-ID"] = make_msgid()
        message.set_content(text_body)
        message.add_alternative(html_body, subtype="html")
        return message

    async def send(
        self,
        template: Template,
        recipient: str,
        subject: str,
        fields: dict[str, Any],
    ) -> DispatchResult:
        if not recipient:
            return DispatchResult(ok=False, recipient="", error="No recipient address configured.")

        try:
            html_body, text_body = self.render(template, fields)
            message = self.build_message(recipient, subject, html_body, text_body)
        except (TemplateError, ValueError) as exc:
            logger.exception("mail_render_failed template=%s", template.value)
            return DispatchResult(ok=False, recipient=recipient, error=f"Could not render email: {exc}")

        try:
            message_id = await self.transport.send(message)
        except (aiosmtplib.SMTPException, OSError, TimeoutError) as exc:
            logger.warning(
                "mail_send_failed template=%s error=%s",
                template.value,
                type(exc).__name__,
            )
            return DispatchResult(ok=False, recipient=recipient, error=str(exc) or type(exc).__name__)

        logger.info("mail_sent template=%s message_id=%s", template.value, message_id)
        return DispatchResult(ok=True, recipient=recipient, message_id=message_id)


def build_dispatcher(transport: MailTransport | None = None) -> NotificationDispatcher:
    return NotificationDispatcher(
        transport or SmtpMailer.from_env(),
        sender_address=config.mail_user(),
        sender_name=config.site_name(),
    )
