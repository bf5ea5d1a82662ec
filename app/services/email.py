"""
Email service
Handles SMTP configuration, error reports and invitation emails
"""

import os
import smtplib
import logging
import traceback
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from datetime import datetime

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails via SMTP"""

    def __init__(self):
        self.smtp_host = os.getenv("SMTP_HOST")
        self.smtp_port = int(os.getenv("SMTP_PORT", "587"))
        self.smtp_user = os.getenv("SMTP_USER")
        self.smtp_pass = os.getenv("SMTP_PASS")
        self.smtp_use_tls = os.getenv("SMTP_USE_TLS", "true").lower() in {
            "1",
            "true",
            "yes",
        }
        self.mail_from = os.getenv("MAIL_FROM") or self.smtp_user
        self.from_addr = os.getenv("ERROR_FROM", "errors@asientos.local")
        self.to_addrs = [
            addr.strip()
            for addr in os.getenv("ERROR_TO", "").split(",")
            if addr.strip()
        ]

    def has_smtp(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_pass)

    def is_configured(self) -> bool:
        """Check if error reporting is properly configured"""
        return self.has_smtp() and bool(self.to_addrs)

    def _send(self, msg) -> None:
        server = smtplib.SMTP(self.smtp_host, self.smtp_port)
        try:
            if self.smtp_use_tls:
                server.starttls()
            server.login(self.smtp_user, self.smtp_pass)
            server.send_message(msg)
        finally:
            server.quit()

    def send_invitation_email(
        self, to_email: str, nombre: str, event_name: str, invite_link: str
    ) -> None:
        """
        Envía la invitación con el enlace personal para elegir asiento.

        Lanza la excepción de smtplib si el envío falla; quien llama decide cómo
        contabilizar el error.
        """
        msg = MIMEMultipart("alternative")
        msg["Subject"] = f"Invitación: {event_name}"
        msg["From"] = self.mail_from
        msg["To"] = to_email

        body = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #2c3e50;">{escape(event_name)}</h2>
                <p>Hola {escape(nombre)},</p>
                <p>Estás invitado(a) a la ceremonia. Elige tu asiento desde el siguiente enlace:</p>
                <p style="text-align: center; margin: 30px 0;">
                    <a href="{escape(invite_link)}" style="background-color: #0284c7; color: #fff; padding: 12px 24px; border-radius: 6px; text-decoration: none;">Elegir asiento</a>
                </p>
                <p style="color: #666; font-size: 14px;">El enlace es personal, no lo compartas.</p>
            </div>
        </body>
        </html>
        """
        msg.attach(MIMEText(body, "html", "utf-8"))
        self._send(msg)
        logger.info(f"Invitación enviada a {to_email}")

    def send_error_email(self, error_data: dict) -> bool:
        """
        Send error notification email

        Args:
            error_data: Dictionary containing error information
                - path: Request path
                - method: HTTP method
                - client: Client IP
                - exception: Exception object
                - timestamp: Error timestamp
        """
        if not self.is_configured():
            logger.warning("Email service not configured, skipping error email")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = (
                f"[Asientos Backend][{os.getenv('ENVIRONMENT', 'development')}] ERROR"
            )
            msg["From"] = self.from_addr
            msg["To"] = ", ".join(self.to_addrs)
            msg.attach(MIMEText(self._generate_error_html(error_data), "html", "utf-8"))

            self._send(msg)

            logger.info(f"Error email sent successfully to {', '.join(self.to_addrs)}")
            return True

        except Exception as e:
            logger.error(f"Failed to send error email: {e}")
            return False

    def _generate_error_html(self, error_data: dict) -> str:
        """Generate HTML content for error email"""
        path = error_data.get("path", "Unknown")
        method = error_data.get("method", "Unknown")
        client = error_data.get("client", "Unknown")
        exception = error_data.get("exception")
        timestamp = error_data.get(
            "timestamp", datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S")
        )

        if exception:
            tb_lines = traceback.format_exception(
                type(exception), exception, exception.__traceback__
            )
            traceback_html = "".join(
                f'<div class="line">{escape(line.rstrip())}</div>'
                for line in tb_lines
                if line.strip()
            )
        else:
            traceback_html = '<div class="line">No traceback available</div>'

        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
            <style>
                body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; padding: 20px; }}
                .traceback {{ background: #1e1e1e; color: #d4d4d4; padding: 20px; border-radius: 6px; font-family: monospace; font-size: 12px; white-space: pre-wrap; }}
            </style>
        </head>
        <body>
            <h2 style="color: #dc3545;">Unhandled Exception</h2>
            <p>{escape(timestamp)} UTC</p>
            <p><strong>Endpoint:</strong> {escape(method)} {escape(path)}<br>
               <strong>Client IP:</strong> {escape(client)}</p>
            <div class="traceback">{traceback_html}</div>
        </body>
        </html>
        """


# Global email service instance
email_service = EmailService()
