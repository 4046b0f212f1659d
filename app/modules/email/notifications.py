"""
Encolado de notificaciones por email para eventos de documentos.

Un fallo al encolar nunca aborta la operación de negocio: solo se registra.
"""
import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.core.config import settings
from app.modules.email.tasks import send_document_notification_task

logger = logging.getLogger(__name__)

SALES_ORDER_CREATED = "sales_order_created"
DELIVERY_ORDER_CREATED = "delivery_order_created"

_TEMPLATES = {
    SALES_ORDER_CREATED: ("sales_order_created.html", "Sales Order {number} created"),
    DELIVERY_ORDER_CREATED: ("delivery_order_created.html", "Delivery Order {number} dispatched"),
}


def notifications_enabled(db: Session) -> bool:
    """Flag global (settings) y flag de empresa (email_settings.enable_notifications)."""
    if not settings.EMAIL_NOTIFICATIONS_ENABLED:
        return False
    from app.modules.settings.service import SettingsService
    company = SettingsService(db).get_company_details()
    return bool(company.email_settings.enable_notifications)


def notify_document_event(
    db: Session,
    event: str,
    number: str,
    recipients: List[str],
    context: Dict[str, Any]
) -> bool:
    """
    Encolar la notificación de un evento. Retorna True si quedó encolada.
    """
    recipients = [r for r in recipients if r]
    if not recipients:
        logger.debug(f"Notification {event} for {number} skipped: no recipients")
        return False

    try:
        if not notifications_enabled(db):
            return False
        template_name, subject = _TEMPLATES[event]
        send_document_notification_task.delay(
            to_emails=recipients,
            subject=subject.format(number=number),
            template_name=template_name,
            context={**context, "number": number}
        )
        logger.info(f"Notification {event} queued for {number}")
        return True
    except Exception as e:
        logger.warning(f"Could not queue notification {event} for {number}: {e}")
        return False
