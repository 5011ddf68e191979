from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Protocol

from storefront.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    body: str
    reply_to: Optional[str] = None


class Mailer(Protocol):
    def send(self, message: MailMessage) -> None: ...


class SmtpMailer:
    """Plain-text mail over SMTP. SSL when secure, otherwise STARTTLS if offered."""

    def __init__(
        self,
        host: str,
        port: int,
        secure: bool = False,
        user: str = "",
        password: str = "",
        sender: str = "",
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.secure = secure
        self.user = user
        self.password = password
        self.sender = sender or user
        self.timeout = timeout

    def _build(self, message: MailMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = message.to
        msg["Subject"] = message.subject
        if message.reply_to:
            msg["Reply-To"] = message.reply_to
        msg.set_content(message.body)
        return msg

    def send(self, message: MailMessage) -> None:
        msg = self._build(message)
        context = ssl.create_default_context()

        if self.secure:
            smtp = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)
        else:
            smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)

        with smtp:
            if not self.secure:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls(context=context)
                    smtp.ehlo()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(msg)

        logger.info("Mail sent to %s: %s", message.to, message.subject)


def build_mailer(s: Settings) -> SmtpMailer:
    return SmtpMailer(
        host=s.smtp_host,
        port=s.smtp_port,
        secure=s.smtp_secure,
        user=s.smtp_user,
        password=s.smtp_pass,
        sender=s.mail_from,
    )
