"""
Endpoints de configuración de la empresa.

Lectura: cualquier rol. Escritura: Maker, Approver y Admin.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, VIEW_ROLES, SETTINGS_ROLES, DELETE_ROLES
from app.modules.settings.service import SettingsService, PointOfContactService
from app.modules.settings.schemas import (
    CompanyDetails, PdfSettings, TermsSettings,
    PointOfContactCreate, PointOfContactUpdate, PointOfContactOut
)

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("/company", response_model=CompanyDetails)
def get_company_details(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return SettingsService(db).get_company_details()


@router.put("/company", response_model=CompanyDetails)
def update_company_details(
    data: CompanyDetails,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(SETTINGS_ROLES))
):
    return SettingsService(db).update_company_details(data)


@router.get("/pdf", response_model=PdfSettings)
def get_pdf_settings(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return SettingsService(db).get_pdf_settings()


@router.put("/pdf", response_model=PdfSettings)
def update_pdf_settings(
    data: PdfSettings,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(SETTINGS_ROLES))
):
    return SettingsService(db).update_pdf_settings(data)


@router.get("/terms", response_model=TermsSettings)
def get_terms(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return TermsSettings(terms=SettingsService(db).get_terms())


@router.put("/terms", response_model=TermsSettings)
def update_terms(
    data: TermsSettings,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(SETTINGS_ROLES))
):
    return TermsSettings(terms=SettingsService(db).update_terms(data))


# ===== POINTS OF CONTACT =====

@router.get("/points-of-contact", response_model=List[PointOfContactOut])
def list_points_of_contact(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return PointOfContactService(db).list_contacts()


@router.post("/points-of-contact", response_model=PointOfContactOut, status_code=status.HTTP_201_CREATED)
def create_point_of_contact(
    data: PointOfContactCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(SETTINGS_ROLES))
):
    return PointOfContactService(db).create_contact(data)


@router.patch("/points-of-contact/{contact_id}", response_model=PointOfContactOut)
def update_point_of_contact(
    contact_id: UUID,
    data: PointOfContactUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(SETTINGS_ROLES))
):
    return PointOfContactService(db).update_contact(contact_id, data)


@router.post("/points-of-contact/{contact_id}/default", response_model=PointOfContactOut)
def set_default_point_of_contact(
    contact_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(SETTINGS_ROLES))
):
    return PointOfContactService(db).set_default(contact_id)


@router.delete("/points-of-contact/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_point_of_contact(
    contact_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(DELETE_ROLES))
):
    PointOfContactService(db).delete_contact(contact_id)
