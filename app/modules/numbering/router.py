from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, VIEW_ROLES, SETTINGS_ROLES
from app.modules.numbering.service import NumberingService
from app.modules.numbering.schemas import (
    DocumentType, NumberingSettings, NumberingSettingsUpdate, NumberPreview
)

router = APIRouter(prefix="/settings/numbering", tags=["Document Numbering"])


@router.get("/", response_model=NumberingSettings)
def get_numbering_settings(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    """Configuración de numeración de los cuatro tipos de documento."""
    service = NumberingService(db)
    settings = service.get_settings()
    db.commit()  # persiste las secuencias creadas con valores por defecto
    return settings


@router.put("/", response_model=NumberingSettings)
def update_numbering_settings(
    data: NumberingSettingsUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(SETTINGS_ROLES))
):
    return NumberingService(db).update_settings(data)


@router.get("/{doc_type}/preview", response_model=NumberPreview)
def preview_number(
    doc_type: DocumentType,
    party_name: Optional[str] = Query(None, description="Cliente o proveedor para {CUST}/{VEND}"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    """Siguiente número sin consumirlo."""
    number = NumberingService(db).preview(doc_type, party_name)
    db.commit()
    return NumberPreview(doc_type=doc_type, party_name=party_name, number=number)
