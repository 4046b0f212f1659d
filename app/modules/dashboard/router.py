from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, VIEW_ROLES
from app.modules.dashboard.schemas import DashboardResponse
from app.modules.dashboard.service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/", response_model=DashboardResponse)
def get_dashboard(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    """Contadores, valor de órdenes abiertas y documentos recientes"""
    return DashboardService(db).get_dashboard()
