"""
Envío de correo por SMTP con plantillas Jinja2 (templates/*.html).

Las notificaciones de documentos no se envían desde el request: se encolan
como tareas de Celery (ver tasks.py y notifications.py).
"""
import logging
import smtplib
import ssl
from contextlib import contextmanager
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


class EmailService:

    def __init__(self):
        self.smtp_server = settings.EMAIL_SMTP_SERVER
        self.smtp_port = settings.EMAIL_SMTP_PORT
        self.username = settings.EMAIL_USERNAME
        self.password = settings.EMAIL_PASSWORD
        self.use_tls = settings.EMAIL_USE_TLS
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.frontend_url = settings.FRONTEND_URL
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"])
        )

    @property
    def sender(self) -> str:
        return f"{self.from_name} <{self.from_email}>" if self.from_name else self.from_email

    @contextmanager
    def smtp_connection(self) -> Iterator[smtplib.SMTP]:
        """STARTTLS si EMAIL_USE_TLS, si no SSL directo. Login solo con usuario configurado."""
        if self.use_tls:
            server = smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=30)
            server.starttls(context=ssl.create_default_context())
        else:
            server = smtplib.SMTP_SSL(self.smtp_server, self.smtp_port, timeout=30)
        try:
            if self.username:
                server.login(self.username, self.password)
            yield server
        finally:
            server.quit()

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        return self.jinja_env.get_template(template_name).render(**context)

    def build_message(
        self,
        to_emails: List[str],
        subject: str,
        html_content: Optional[str] = None,
        text_content: Optional[str] = None,
        cc_emails: Optional[List[str]] = None
    ) -> MIMEMultipart:
        """Mensaje multipart/alternative; el texto plano va primero."""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = ", ".join(to_emails)
        if cc_emails:
            msg["Cc"] = ", ".join(cc_emails)

        for content, subtype in ((text_content, "plain"), (html_content, "html")):
            if content:
                msg.attach(MIMEText(content, subtype, "utf-8"))
        return msg

    def send_email(
        self,
        to_emails: List[str],
        subject: str,
        html_content: Optional[str] = None,
        text_content: Optional[str] = None,
        cc_emails: Optional[List[str]] = None
    ) -> bool:
        """
        Enviar un correo. Retorna False (y registra el error) si el envío
        falla; las tareas de Celery deciden si reintentar.
        """
        msg = self.build_message(to_emails, subject, html_content, text_content, cc_emails)
        recipients = list(to_emails) + list(cc_emails or [])
        try:
            with self.smtp_connection() as server:
                server.sendmail(self.from_email, recipients, msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email '{subject}': {e}")
            return False

        logger.info(f"Email '{subject}' sent to {', '.join(recipients)}")
        return True

    def send_template_email(
        self,
        to_emails: List[str],
        subject: str,
        template_name: str,
        context: Dict[str, Any],
        cc_emails: Optional[List[str]] = None
    ) -> bool:
        html_content = self.render_template(template_name, context)
        return self.send_email(
            to_emails=to_emails,
            subject=subject,
            html_content=html_content,
            text_content=subject,
            cc_emails=cc_emails
        )


email_service = EmailService()
