import smtplib
import ssl
from html import escape
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional
from app.core.config import Settings, settings as default_settings
from app.core.logging_config import logger


def _redact_email(email: str) -> str:
    """Redact an email address for logging."""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class MailService:
    """
    Transactional e-mail over SMTP.

    When no SMTP host is configured (local development, tests) messages are
    logged instead of sent.
    """

    def __init__(self, settings: Settings = default_settings):
        self.settings = settings

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.SMTP_HOST and self.from_email)

    @property
    def from_email(self) -> Optional[str]:
        return self.settings.MAIL_FROM_EMAIL or self.settings.SMTP_USER

    def send_email(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        """
        Send an email.

        Returns:
            True if sent (or logged in dev mode), False if delivery failed
        """
        if not self.is_configured:
            logger.info(f"Email (dev mode) to {_redact_email(to_email)}: {subject}\n{text_body}")
            return True

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.settings.MAIL_FROM_NAME} <{self.from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        context = ssl.create_default_context()
        try:
            if self.settings.SMTP_USE_TLS:
                with smtplib.SMTP(self.settings.SMTP_HOST, self.settings.SMTP_PORT, timeout=30) as server:
                    server.starttls(context=context)
                    if self.settings.SMTP_USER and self.settings.SMTP_PASSWORD:
                        server.login(self.settings.SMTP_USER, self.settings.SMTP_PASSWORD)
                    server.sendmail(self.from_email, to_email, msg.as_string())
            else:
                with smtplib.SMTP_SSL(
                    self.settings.SMTP_HOST, self.settings.SMTP_PORT, context=context, timeout=30
                ) as server:
                    if self.settings.SMTP_USER and self.settings.SMTP_PASSWORD:
                        server.login(self.settings.SMTP_USER, self.settings.SMTP_PASSWORD)
                    server.sendmail(self.from_email, to_email, msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {_redact_email(to_email)}: {type(e).__name__}: {str(e)}")
            return False

        logger.info(f"Email sent to {_redact_email(to_email)}: {subject}")
        return True

    def send_invitation_email(
        self,
        *,
        to_email: str,
        tenant_name: str,
        inviter_name: str,
        invitation_link: str
    ) -> bool:
        hours = self.settings.INVITATION_EXPIRE_HOURS
        subject = f"Invitation to join {tenant_name}"
        text_body = (
            f"{inviter_name} has invited you to join {tenant_name}.\n\n"
            f"Accept the invitation: {invitation_link}\n\n"
            f"This invitation will expire in {hours} hours."
        )
        html_body = (
            f"<p><strong>{escape(inviter_name)}</strong> has invited you to join "
            f"<strong>{escape(tenant_name)}</strong>.</p>"
            f'<p><a href="{escape(invitation_link)}">Accept Invitation</a></p>'
            f"<p>This invitation will expire in {hours} hours. If you didn't expect "
            f"this invitation, you can safely ignore this email.</p>"
        )
        return self.send_email(to_email, subject, html_body, text_body)


# Create a singleton instance
mail_service = MailService()
