"""
Email Service for Shikkha Hub
=============================
Handles outgoing email:
- Notification emails fanned out from the notifications module
- Welcome emails for accounts created by a school admin
- Credit purchase confirmations

Supports both SMTP and SendGrid.
"""

import asyncio
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import Optional, List, Dict, Any

import aiosmtplib
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content

from app.core.config import settings
from app.core.logging_config import logger


class EmailService:
    """Async email service using SMTP or SendGrid"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.frontend_url = settings.FRONTEND_URL
        self.sendgrid_api_key = settings.SENDGRID_API_KEY
        self.use_sendgrid = settings.USE_SENDGRID and bool(self.sendgrid_api_key)

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        if self.use_sendgrid:
            return bool(self.sendgrid_api_key)
        return bool(self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning("[Email] Email service not configured, skipping email send")
            return False

        if self.use_sendgrid:
            return await self._send_via_sendgrid(to_email, subject, html_content, text_content)
        return await self._send_via_smtp(to_email, subject, html_content, text_content)

    async def _send_via_sendgrid(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send email via SendGrid API"""
        try:
            message = Mail(
                from_email=Email(self.from_email, self.from_name),
                to_emails=To(to_email),
                subject=subject,
                html_content=Content("text/html", html_content)
            )

            if text_content:
                message.add_content(Content("text/plain", text_content))

            sg = SendGridAPIClient(self.sendgrid_api_key)
            # SendGrid client is synchronous
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(None, sg.send, message)

            if response.status_code in [200, 201, 202]:
                logger.info(f"[Email/SendGrid] Sent email to {to_email}: {subject}")
                return True
            logger.error(f"[Email/SendGrid] Failed with status {response.status_code}: {response.body}")
            return False

        except Exception as e:
            logger.error(f"[Email/SendGrid] Failed to send email to {to_email}: {e}")
            return False

    async def _send_via_smtp(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send email via SMTP"""
        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            # Plain text first so clients prefer HTML
            if text_content:
                message.attach(MIMEText(text_content, "plain", "utf-8"))
            message.attach(MIMEText(html_content, "html", "utf-8"))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True
            )

            logger.info(f"[Email/SMTP] Sent email to {to_email}: {subject}")
            return True

        except Exception as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    def _layout(self, heading: str, body_html: str, school_name: Optional[str] = None) -> str:
        footer = escape(school_name) if school_name else escape(settings.APP_NAME)
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
            <style>
                body {{ font-family: 'Noto Sans Bengali', -apple-system, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }}
                .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
                .header {{ background: #1a365d; color: white; padding: 24px; text-align: center; border-radius: 10px 10px 0 0; }}
                .content {{ background: #f9fafb; padding: 24px; border-radius: 0 0 10px 10px; }}
                .bn {{ color: #4a5568; margin-top: 16px; border-top: 1px solid #e2e8f0; padding-top: 16px; }}
                .footer {{ text-align: center; margin-top: 24px; font-size: 12px; color: #6b7280; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header"><h2>{escape(heading)}</h2></div>
                <div class="content">{body_html}</div>
                <div class="footer">{footer}</div>
            </div>
        </body>
        </html>
        """

    async def send_notification_email(
        self,
        to_email: str,
        title: str,
        message: str,
        title_bn: Optional[str] = None,
        message_bn: Optional[str] = None,
        school_name: Optional[str] = None,
        action_url: Optional[str] = None
    ) -> bool:
        """Bilingual notification email; Bangla text follows the English block"""
        body = f"<p>{escape(message)}</p>"
        if title_bn or message_bn:
            body += (
                f'<div class="bn"><strong>{escape(title_bn or "")}</strong>'
                f'<p>{escape(message_bn or "")}</p></div>'
            )
        if action_url:
            body += f'<p><a href="{escape(action_url)}">{escape(action_url)}</a></p>'

        text = message + (f"\n\n{title_bn or ''}\n{message_bn or ''}" if (title_bn or message_bn) else "")
        subject = f"{title} | {title_bn}" if title_bn else title
        return await self.send_email(to_email, subject, self._layout(title, body, school_name), text)

    async def send_bulk_notification(
        self,
        recipients: List[Dict[str, str]],
        title: str,
        message: str,
        title_bn: Optional[str] = None,
        message_bn: Optional[str] = None,
        school_name: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Send the same notification to many recipients.

        Returns:
            Dict with 'success_count', 'failed_count', 'failed_emails'
        """
        success_count = 0
        failed_emails = []

        for recipient in recipients:
            email = recipient.get("email")
            if not email:
                continue
            sent = await self.send_notification_email(
                email, title, message, title_bn, message_bn, school_name
            )
            if sent:
                success_count += 1
            else:
                failed_emails.append(email)

        logger.info(f"[Email] Bulk send complete: {success_count} success, {len(failed_emails)} failed")
        return {
            "success_count": success_count,
            "failed_count": len(failed_emails),
            "failed_emails": failed_emails,
        }

    async def send_welcome_email(
        self,
        to_email: str,
        full_name: str,
        role: str,
        school_name: str
    ) -> bool:
        """Sent when an admin creates an account for a teacher, student or parent"""
        body = (
            f"<p>Hi {escape(full_name or to_email)},</p>"
            f"<p>An account with the <strong>{escape(role)}</strong> role has been created for you at "
            f"<strong>{escape(school_name)}</strong>.</p>"
            f'<p><a href="{escape(self.frontend_url)}/login">Sign in</a> with this email address.</p>'
            '<div class="bn"><p>আপনার অ্যাকাউন্ট তৈরি করা হয়েছে। এই ইমেইল দিয়ে লগইন করুন।</p></div>'
        )
        return await self.send_email(
            to_email,
            f"Welcome to {school_name}",
            self._layout(f"Welcome to {school_name}", body, school_name),
        )

    async def send_purchase_confirmation_email(
        self,
        to_email: str,
        package_name: str,
        credits: int,
        amount: float,
        balance_after: int,
        transaction_id: Optional[str] = None
    ) -> bool:
        """Credit package purchase receipt"""
        body = (
            f"<p>Your purchase of <strong>{escape(package_name)}</strong> is complete.</p>"
            f"<p>Credits added: <strong>{credits}</strong><br>"
            f"Amount: <strong>৳{amount:,.2f}</strong><br>"
            f"Current balance: <strong>{balance_after}</strong></p>"
        )
        if transaction_id:
            body += f"<p>Transaction ID: {escape(transaction_id)}</p>"
        body += f'<div class="bn"><p>{credits} ক্রেডিট যোগ করা হয়েছে।</p></div>'
        return await self.send_email(
            to_email,
            f"Credit purchase confirmed - {package_name}",
            self._layout("Purchase Confirmed", body),
        )


# Singleton instance
email_service = EmailService()
