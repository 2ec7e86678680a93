"""
Email service — delivers one-time passcodes via SMTP.

In development (no SMTP configured), emails are logged to the console
so you can see what *would* be sent without configuring a mail server.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from email.mime.text import MIMEText
from typing import Protocol

import aiosmtplib

from otp_gate import config
from otp_gate.messages import MessageCatalog


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OtpMessage:
    recipient: str
    sender: str
    subject: str
    body: str


class Mailer(Protocol):
    async def send(self, message: OtpMessage) -> None:
        """Deliver *message*; raise on any delivery failure."""


def address_tag(address: str) -> str:
    """Short stable tag so each address gets its own mail thread."""
    return hashlib.sha256(address.encode("utf-8")).hexdigest()[:16]


def build_otp_message(
    address: str,
    code: str,
    catalog: MessageCatalog,
    *,
    validity_seconds: float,
    app_dns: str,
    sender: str,
) -> OtpMessage:
    hours = f"{validity_seconds / 3600:g}"
    return OtpMessage(
        recipient=address,
        sender=sender,
        subject=f"{catalog.subject} - {app_dns} - {address_tag(address)}",
        body=catalog.body.format(hours=hours, code=code),
    )


class SmtpMailer:
    """
    Sends messages through an SMTP relay with aiosmtplib.

    Falls back to logging the message when SMTP is disabled.
    """

    def __init__(
        self,
        *,
        hostname: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        start_tls: bool | None = None,
        self_signed: bool | None = None,
        enabled: bool | None = None,
    ) -> None:
        self._hostname = hostname if hostname is not None else config.SMTP_HOST
        self._port = port if port is not None else config.SMTP_PORT
        self._username = username if username is not None else config.SMTP_USERNAME
        self._password = password if password is not None else config.SMTP_PASSWORD
        self._start_tls = start_tls if start_tls is not None else config.SMTP_USE_TLS
        self._self_signed = self_signed if self_signed is not None else config.SMTP_TLS_SELFSIGNED
        self._enabled = enabled if enabled is not None else config.smtp_enabled()

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def send(self, message: OtpMessage) -> None:
        # ── Console fallback (dev mode) ───────────────────────────────────
        if not self._enabled:
            logger.info(
                "📧 [DEV] Would send email to %s:\n  Subject: %s\n  %s",
                message.recipient,
                message.subject,
                message.body,
            )
            return

        # ── Real SMTP send ────────────────────────────────────────────────
        msg = MIMEText(message.body, "plain", "utf-8")
        msg["Subject"] = message.subject
        msg["From"] = message.sender
        msg["To"] = message.recipient

        # Authenticate only when a password is configured
        credentials = {}
        if self._password:
            credentials = {"username": self._username, "password": self._password}

        try:
            await aiosmtplib.send(
                msg,
                hostname=self._hostname,
                port=self._port,
                start_tls=self._start_tls,
                validate_certs=not self._self_signed,
                **credentials,
            )
            logger.info("OTP email sent to %s", message.recipient)
        except Exception:
            logger.exception("Failed to send email to %s", message.recipient)
            raise
