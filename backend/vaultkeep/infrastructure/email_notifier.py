"""Email Notifier — sends verification and email-change links over SMTP.

Invariants:
    - Every message carries the token inside a link back to this API
    - Email-change messages also carry the requested new address
    - SMTP/socket failures surface as EmailDeliveryError (core/errors.py)
    - Blocking smtplib calls run in a worker thread, never on the event loop

Design Decisions:
    - stdlib smtplib + email.mime: no extra dependency for plain-text mail
    - LoggingEmailNotifier when no SMTP host is configured: local development
      prints the links instead of sending them
    - Recipient of the change email is configurable (new or current address)
"""

import asyncio
import logging
import smtplib
from email.mime.text import MIMEText
from urllib.parse import urlencode

from vaultkeep.core.domain_types import EmailChangeRecipient
from vaultkeep.core.errors import EmailDeliveryError, ErrorContext
from vaultkeep.core.repository_protocols import UserLike

logger = logging.getLogger(__name__)


def verification_link(base_url: str, user: UserLike, token: str) -> str:
    query = urlencode({"token": token})
    return f"{base_url.rstrip('/')}/api/v1/users/{user.id}/email/verify?{query}"


def email_change_link(
    base_url: str, user: UserLike, token: str, new_email: str,
) -> str:
    query = urlencode({"token": token, "email": new_email})
    return f"{base_url.rstrip('/')}/api/v1/users/{user.id}/email/change?{query}"


def change_recipient(
    user: UserLike, new_email: str, recipient: EmailChangeRecipient,
) -> str:
    if recipient is EmailChangeRecipient.CURRENT:
        return user.email
    return new_email


class SmtpEmailNotifier:
    """Delivers account emails through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout_seconds: float = 10.0,
        mail_from: str = "no-reply@vaultkeep.local",
        base_url: str = "http://localhost:8000",
        recipient: EmailChangeRecipient = EmailChangeRecipient.NEW,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout_seconds = timeout_seconds
        self.mail_from = mail_from
        self.base_url = base_url
        self.recipient = recipient

    async def send_verification_email(self, user: UserLike, token: str) -> None:
        link = verification_link(self.base_url, user, token)
        body = (
            f"Hello {user.name},\n\n"
            f"please confirm your email address by opening this link:\n\n{link}\n"
        )
        await self._send(user, user.email, "Verify your email address", body)

    async def send_email_change_email(
        self, user: UserLike, token: str, new_email: str,
    ) -> None:
        link = email_change_link(self.base_url, user, token, new_email)
        body = (
            f"Hello {user.name},\n\n"
            f"a change of your account email to {new_email} was requested.\n"
            f"Confirm it by opening this link:\n\n{link}\n"
        )
        to = change_recipient(user, new_email, self.recipient)
        await self._send(user, to, "Confirm your new email address", body)

    async def _send(self, user: UserLike, to: str, subject: str, body: str) -> None:
        msg = MIMEText(body, "plain", "utf-8")
        msg["From"] = self.mail_from
        msg["To"] = to
        msg["Subject"] = subject
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(
                type(e).__name__, ErrorContext(user_id=str(user.id)),
            ) from e
        logger.info(f"Sent '{subject}' email", extra={"user_id": user.id})

    def _deliver(self, msg: MIMEText) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(msg)


class LoggingEmailNotifier:
    """Development notifier — logs the links it would have sent."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        recipient: EmailChangeRecipient = EmailChangeRecipient.NEW,
    ):
        self.base_url = base_url
        self.recipient = recipient

    async def send_verification_email(self, user: UserLike, token: str) -> None:
        logger.info(
            f"[dev mail] to={user.email} verify: "
            f"{verification_link(self.base_url, user, token)}",
            extra={"user_id": user.id},
        )

    async def send_email_change_email(
        self, user: UserLike, token: str, new_email: str,
    ) -> None:
        to = change_recipient(user, new_email, self.recipient)
        logger.info(
            f"[dev mail] to={to} change email: "
            f"{email_change_link(self.base_url, user, token, new_email)}",
            extra={"user_id": user.id},
        )


def build_email_notifier(settings) -> SmtpEmailNotifier | LoggingEmailNotifier:
    """SMTP when a host is configured, log-only otherwise."""
    if not settings.smtp_host:
        return LoggingEmailNotifier(
            base_url=settings.public_base_url,
            recipient=settings.email_change_recipient,
        )
    return SmtpEmailNotifier(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        timeout_seconds=settings.smtp_timeout_seconds,
        mail_from=settings.mail_from,
        base_url=settings.public_base_url,
        recipient=settings.email_change_recipient,
    )
