from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr
from app.modules.auth.dependencies import AuthDependencies, ADMIN_ROLES
from app.modules.email.service import email_service
from app.modules.email.tasks import send_email_task
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email", tags=["Email"])

class TestEmailRequest(BaseModel):
    to_email: EmailStr
    subject: str = "Test Email from ABS OMS"
    message: str = "This is a test email to verify SMTP configuration."

@router.post("/test")
def test_email(
    request: TestEmailRequest,
    auth_context=Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    """Encolar un correo de prueba para verificar la configuración SMTP."""
    try:
        text_content = (
            f"{request.subject}\n\n{request.message}\n\n"
            "If you received this email, your SMTP configuration is working correctly."
        )
        task = send_email_task.delay(
            to_emails=[request.to_email],
            subject=request.subject,
            text_content=text_content
        )
        return {"message": "Test email queued", "task_id": task.id}
    except Exception as e:
        logger.error(f"Error queuing test email: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error encolando email: {str(e)}")

@router.get("/config")
def get_email_config(auth_context=Depends(AuthDependencies.require_role(ADMIN_ROLES))):
    """Configuración SMTP actual (sin credenciales)."""
    return {
        "smtp_server": email_service.smtp_server,
        "smtp_port": email_service.smtp_port,
        "use_tls": email_service.use_tls,
        "from_email": email_service.from_email,
        "from_name": email_service.from_name,
        "username_configured": bool(email_service.username),
        "notifications_enabled": settings.EMAIL_NOTIFICATIONS_ENABLED,
    }
