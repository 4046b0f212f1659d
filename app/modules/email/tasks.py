"""
Tareas de Celery para el envío de correos.

Un envío fallido se reintenta hasta MAX_RETRIES veces con espera exponencial;
después la tarea termina con status "failed" sin lanzar la excepción.
"""
import logging
from typing import Any, Dict, List, Optional

from app.core.celery import celery_app
from app.modules.email.service import email_service

logger = logging.getLogger(__name__)

MAX_RETRIES = 3


class EmailDeliveryError(Exception):
    pass


def _retry_or_fail(task, exc: Exception, base_countdown: int, result: Dict[str, Any]) -> Dict[str, Any]:
    if task.request.retries < task.max_retries:
        raise task.retry(exc=exc, countdown=base_countdown * (2 ** task.request.retries))
    logger.error(f"Giving up after {task.request.retries} retries: {exc}")
    return {**result, "status": "failed", "error": str(exc)}


@celery_app.task(bind=True, max_retries=MAX_RETRIES)
def send_email_task(
    self,
    to_emails: List[str],
    subject: str,
    html_content: Optional[str] = None,
    text_content: Optional[str] = None,
    cc_emails: Optional[List[str]] = None
):
    """Correo libre (usado por el endpoint de prueba SMTP)."""
    result = {"recipients": to_emails}
    try:
        if not email_service.send_email(to_emails, subject, html_content, text_content, cc_emails):
            raise EmailDeliveryError(f"SMTP rejected '{subject}'")
        return {**result, "status": "success"}
    except EmailDeliveryError as exc:
        return _retry_or_fail(self, exc, 60, result)


@celery_app.task(bind=True, max_retries=MAX_RETRIES)
def send_document_notification_task(
    self,
    to_emails: List[str],
    subject: str,
    template_name: str,
    context: Dict[str, Any]
):
    """Notificación de orden de venta creada o despacho realizado."""
    result = {"template": template_name, "recipients": to_emails}
    try:
        sent = email_service.send_template_email(
            to_emails=to_emails,
            subject=subject,
            template_name=template_name,
            context={**context, "frontend_url": email_service.frontend_url}
        )
        if not sent:
            raise EmailDeliveryError(f"Notification '{template_name}' not delivered")
        logger.info(f"Notification '{template_name}' sent to {', '.join(to_emails)}")
        return {**result, "status": "success"}
    except EmailDeliveryError as exc:
        return _retry_or_fail(self, exc, 30, result)
