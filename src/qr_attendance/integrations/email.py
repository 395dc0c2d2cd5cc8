from __future__ import annotations

import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Protocol

from ..core.exceptions import EmailError


class EmailSender(Protocol):
    def send(self, to: str, subject: str, html: str) -> None:
        """Deliver one message; raise ``EmailError`` on failure."""

        raise NotImplementedError


@dataclass(frozen=True)
class SmtpSettings:
    host: str
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    sender: str = "Attendance System <noreply@attendance.local>"
    timeout: float = 30.0


class SmtpEmailSender:
    def __init__(self, settings: SmtpSettings):
        self._settings = settings

    def send(self, to: str, subject: str, html: str) -> None:
        s = self._settings

        msg = MIMEMultipart("alternative")
        msg["From"] = s.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html", "utf-8"))

        try:
            with smtplib.SMTP(s.host, s.port, timeout=s.timeout) as server:
                if s.use_tls:
                    server.starttls(context=ssl.create_default_context())
                if s.username and s.password:
                    server.login(s.username, s.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailError(str(e)) from e


class DisabledEmailSender:
    """Used when e-mail notifications are switched off in settings."""

    def send(self, to: str, subject: str, html: str) -> None:
        raise EmailError("E-mail notifications are disabled. Email notification skipped.")
