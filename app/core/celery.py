"""
Celery configuration for background tasks
"""
from celery import Celery

from app.core.config import settings

celery_app = Celery(
    "abs_oms",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "app.modules.email.tasks"
    ]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Asia/Kolkata",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=5 * 60,
    task_soft_time_limit=4 * 60,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,

    # SMTP externo: limitar el ritmo de envío
    task_default_rate_limit="100/m",

    result_expires=3600,

    task_routes={
        "app.modules.email.tasks.send_email_task": {"queue": "email"},
        # Notificaciones de documentos (órdenes de venta, despachos)
        "app.modules.email.tasks.send_document_notification_task": {"queue": "notifications"},
    },
)

if __name__ == "__main__":
    celery_app.start()
