"""Email delivery for upload links: SMTP, SendGrid or Resend."""

import html
import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import httpx

from dlvrit.common.exceptions import CollaboratorTimeoutError, NotificationError
from dlvrit.common.outbound import call_blocking

logger = logging.getLogger(__name__)

UPLOAD_SUBJECT = "Your DLVRIT.ai upload link"


@dataclass
class EmailMessage:
    to: str
    subject: str
    html: str
    bcc: Optional[str] = None


def render_upload_email(
    project: Optional[str],
    quantity: int,
    upload_url: str,
    portal_password: Optional[str] = None,
) -> tuple[str, str]:
    """Return (subject, html body) for the post-payment upload email."""
    link = html.escape(upload_url, quote=True)
    lines = [
        "<p>Thanks for your payment!</p>",
        f"<p><strong>Project:</strong> {html.escape(project or 'N/A')}<br>",
        f"<strong>Minutes:</strong> {int(quantity)}<br>",
        f'<strong>Upload link:</strong> <a href="{link}">{link}</a>',
    ]
    if portal_password:
        lines.append(f"<br><strong>Portal password:</strong> {html.escape(portal_password)}")
    lines.append("</p>")
    lines.append("<p>Please upload your file using the link above.</p>")
    return UPLOAD_SUBJECT, "\n".join(lines)


class EmailSender:
    """Sends transactional email.

    ``provider`` is "smtp", "sendgrid" or "resend". With no provider the send is
    logged and skipped. Every failure raises NotificationError so callers can
    report it.
    """

    def __init__(
        self,
        provider: str = "",
        from_email: str = "noreply@dlvrit.ai",
        from_name: str = "DLVRIT.ai",
        smtp_host: str = "",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        smtp_use_tls: bool = False,
        api_key: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.provider = provider.lower()
        self.from_email = from_email
        self.from_name = from_name
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.smtp_use_tls = smtp_use_tls
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @property
    def from_header(self) -> str:
        if self.from_name:
            return f'"{self.from_name}" <{self.from_email}>'
        return self.from_email

    async def send(self, message: EmailMessage) -> bool:
        """Deliver ``message``; returns False only when no provider is configured."""
        if self.provider == "smtp":
            await call_blocking("email", self.timeout, self._send_smtp, message)
        elif self.provider == "sendgrid":
            await self._send_sendgrid(message)
        elif self.provider == "resend":
            await self._send_resend(message)
        else:
            logger.info("No email provider configured; skipped %r to %s", message.subject, message.to)
            return False

        logger.info("Email %r sent to %s via %s", message.subject, message.to, self.provider)
        return True

    def _send_smtp(self, message: EmailMessage) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = self.from_header
        msg["To"] = message.to
        msg.attach(MIMEText(message.html, "html", "utf-8"))

        recipients = [message.to]
        if message.bcc:
            recipients.append(message.bcc)

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as smtp:
                if self.smtp_use_tls:
                    smtp.starttls()
                if self.smtp_user and self.smtp_password:
                    smtp.login(self.smtp_user, self.smtp_password)
                smtp.sendmail(self.from_email, recipients, msg.as_string())
        except smtplib.SMTPResponseException as e:
            logger.error("SMTP rejected message to %s: %s %s", message.to, e.smtp_code, e.smtp_error)
            raise NotificationError(f"Email delivery failed: {e.smtp_code}") from e
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery to %s failed: %s", message.to, e)
            raise NotificationError(f"Email delivery failed: {e}") from e

    async def _post(self, url: str, payload: dict, ok: tuple[int, ...]) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                resp = await client.post(
                    url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
            except httpx.TimeoutException:
                raise CollaboratorTimeoutError("email", self.timeout) from None
            except httpx.HTTPError as e:
                logger.error("Email provider %s unreachable: %s", self.provider, e)
                raise NotificationError(f"Email delivery failed: {e}") from e

        if resp.status_code not in ok:
            logger.error(
                "%s error: status=%s headers=%s body=%s",
                self.provider, resp.status_code, dict(resp.headers), resp.text,
            )
            raise NotificationError(
                f"Email delivery failed: {self.provider} returned {resp.status_code}",
                status_code=resp.status_code,
                headers=dict(resp.headers),
                body=resp.text,
            )

    async def _send_sendgrid(self, message: EmailMessage) -> None:
        """Send via SendGrid v3 API."""
        personalization: dict = {"to": [{"email": message.to}]}
        if message.bcc:
            personalization["bcc"] = [{"email": message.bcc}]
        await self._post(
            "https://api.sendgrid.com/v3/mail/send",
            {
                "personalizations": [personalization],
                "from": {"email": self.from_email, "name": self.from_name},
                "subject": message.subject,
                "content": [{"type": "text/html", "value": message.html}],
            },
            ok=(200, 202),
        )

    async def _send_resend(self, message: EmailMessage) -> None:
        """Send via Resend API."""
        payload = {
            "from": f"{self.from_name} <{self.from_email}>",
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        if message.bcc:
            payload["bcc"] = [message.bcc]
        await self._post("https://api.resend.com/emails", payload, ok=(200, 201))
