"""
SMTP mail relay client.

One instance is built at startup and shared by every request; it holds only
connection settings, each `send()` opens its own SMTP session.
"""

from __future__ import annotations

from email.message import EmailMessage

import aiosmtplib

from core import config


class SmtpMailer:
    def __init__(
        self,
        *,
        hostname: str,
        port: int,
        username: str,
        password: str,
        timeout_s: float,
    ) -> None:
        self.hostname = hostname
        self.port = port
        self.username = username
        self.password = password
        self.timeout_s = timeout_s

    @classmethod
    def from_env(cls) -> SmtpMailer:
        return cls(
            hostname=config.smtp_host(),
            port=config.smtp_port(),
            username=config.mail_user(),
            password=config.mail_password(),
            timeout_s=config.http_timeout_s(),
        )

    async def send(self, message: EmailMessage) -> str | None:
        """
        Deliver one message. Raises `aiosmtplib.SMTPException` / `OSError` on failure.
        """
        await aiosmtplib.send(
            message,
            hostname=self.hostname,
            port=self.port,
            username=self.username or None,
            password=self.password or None,
            use_tls=self.port == 465,
            start_tls=True if self.port == 587 else None,
            timeout=self.timeout_s,
        )
        return message.get("Message-ID")
