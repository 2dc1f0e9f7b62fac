"""
Email Service using SMTP.

Sends verification codes and welcome messages. In development the
messages are written to the log instead of being sent.
"""

import html
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import aiosmtplib

from ..config import EmailConfig
from ..errors import MailDispatchError

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Email Verification - Club Recruitment IITR"
WELCOME_SUBJECT = "Welcome to Club Recruitment IITR!"


class EmailService:
    """Service for sending email via SMTP."""

    def __init__(self, config: Optional[EmailConfig] = None, environment: str = "development"):
        self.config = config or EmailConfig()
        self.environment = environment

        if self.dev_mode:
            logger.info("Email service in development mode, messages will be logged")
        elif not self.is_configured():
            logger.warning("SMTP not configured, email delivery will fail")

    @property
    def dev_mode(self) -> bool:
        return self.environment == "development"

    def is_configured(self) -> bool:
        """Check if SMTP is properly configured."""
        return bool(self.config.smtp_host and self.config.from_email)

    async def send(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> str:
        """
        Send an email.

        Returns:
            A message id ("dev-mode" when only logged)

        Raises:
            MailDispatchError: If SMTP is not configured or delivery fails
        """
        if self.dev_mode:
            logger.info(f"[dev] Email to {to_email}: {subject}\n{text_content or html_content}")
            return "dev-mode"

        if not self.is_configured():
            raise MailDispatchError("Email service is not configured")

        message = MIMEMultipart("alternative")
        message["From"] = f"{self.config.from_name} <{self.config.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject
        if text_content:
            message.attach(MIMEText(text_content, "plain"))
        message.attach(MIMEText(html_content, "html"))

        try:
            await aiosmtplib.send(
                message,
                hostname=self.config.smtp_host,
                port=self.config.smtp_port,
                username=self.config.smtp_user or None,
                password=self.config.smtp_password or None,
                start_tls=True
            )
        except aiosmtplib.SMTPException as e:
            logger.error(f"Email send failed to {to_email}: {e}")
            raise MailDispatchError() from e
        except OSError as e:
            logger.error(f"SMTP connection failed for {to_email}: {e}")
            raise MailDispatchError() from e

        message_id = message.get("Message-ID") or "sent"
        logger.info(f"Email sent to {to_email}: {subject}")
        return message_id

    async def send_otp_email(
        self,
        to_email: str,
        code: str,
        full_name: str,
        expires_minutes: int = 10
    ) -> str:
        """Send the verification code."""
        lifetime = f"{expires_minutes} minute" + ("" if expires_minutes == 1 else "s")
        text = (
            f"Hi {full_name},\n\n"
            "Thank you for registering with Club Recruitment IITR. "
            f"Your verification code is {code}.\n\n"
            f"This code will expire in {lifetime}. "
            "If you didn't request it, please ignore this email."
        )
        body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h2 style="color: #7c3aed; text-align: center;">Club Recruitment IITR</h2>
          <h3>Hi {html.escape(full_name)},</h3>
          <p>Please use the following OTP to verify your email address:</p>
          <p style="text-align: center; font-size: 24px; font-weight: bold; letter-spacing: 5px;">{html.escape(code)}</p>
          <p style="color: #ef4444; font-weight: bold;">This OTP will expire in {lifetime}.</p>
          <p>If you didn't request this verification, please ignore this email.</p>
        </div>
        """
        return await self.send(to_email, OTP_SUBJECT, body, text)

    async def send_welcome_email(self, to_email: str, full_name: str) -> str:
        """Send the post-verification welcome message."""
        login_url = f"{self.config.frontend_url.rstrip('/')}/login"
        text = (
            f"Hi {full_name},\n\n"
            "Congratulations! Your email has been verified successfully.\n"
            f"Start exploring: {login_url}"
        )
        body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h2 style="color: #7c3aed; text-align: center;">Welcome to Club Recruitment IITR!</h2>
          <h3>Hi {html.escape(full_name)},</h3>
          <p>Congratulations! Your email has been verified successfully.</p>
          <p style="text-align: center;"><a href="{html.escape(login_url)}">Start Exploring</a></p>
        </div>
        """
        return await self.send(to_email, WELCOME_SUBJECT, body, text)
