import logging
from typing import List, Type, TypeVar
from uuid import UUID

from fastapi import HTTPException, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from app.modules.settings.models import AppSetting, PointOfContact
from app.modules.settings.schemas import (
    CompanyDetails, PdfSettings, TermsSettings,
    PointOfContactCreate, PointOfContactUpdate
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

COMPANY_DETAILS_KEY = "company_details"
PDF_SETTINGS_KEY = "pdf_settings"
TERMS_KEY = "terms"


class SettingsService:
    """Lectura/escritura de documentos de configuración singleton."""

    def __init__(self, db: Session):
        self.db = db

    def get_document(self, key: str, schema: Type[T]) -> T:
        """
        Valor guardado fusionado sobre los defaults del schema.
        Un documento corrupto se ignora y se retornan los defaults.
        """
        row = self.db.get(AppSetting, key)
        defaults = schema().model_dump(mode="json")
        if row is None or not isinstance(row.value, dict):
            return schema.model_validate(defaults)
        try:
            return schema.model_validate({**defaults, **row.value})
        except ValidationError as e:
            logger.warning(f"Stored setting '{key}' is invalid, using defaults: {e}")
            return schema.model_validate(defaults)

    def save_document(self, key: str, data: BaseModel, commit: bool = True) -> None:
        row = self.db.get(AppSetting, key)
        value = data.model_dump(mode="json")
        if row is None:
            self.db.add(AppSetting(key=key, value=value))
        else:
            row.value = value
        if commit:
            self.db.commit()
        logger.info(f"Setting '{key}' saved")

    # ===== Company / PDF / Terms =====

    def get_company_details(self) -> CompanyDetails:
        return self.get_document(COMPANY_DETAILS_KEY, CompanyDetails)

    def update_company_details(self, data: CompanyDetails) -> CompanyDetails:
        self.save_document(COMPANY_DETAILS_KEY, data)
        return self.get_company_details()

    def get_pdf_settings(self) -> PdfSettings:
        return self.get_document(PDF_SETTINGS_KEY, PdfSettings)

    def update_pdf_settings(self, data: PdfSettings) -> PdfSettings:
        self.save_document(PDF_SETTINGS_KEY, data)
        return self.get_pdf_settings()

    def get_terms(self) -> List[str]:
        return self.get_document(TERMS_KEY, TermsSettings).terms

    def update_terms(self, data: TermsSettings) -> List[str]:
        cleaned = TermsSettings(terms=[t.strip() for t in data.terms if t and t.strip()])
        self.save_document(TERMS_KEY, cleaned)
        return cleaned.terms


class PointOfContactService:
    """CRUD de puntos de contacto; a lo sumo uno queda marcado por defecto."""

    def __init__(self, db: Session):
        self.db = db

    def _clear_default(self, except_id: UUID = None):
        query = self.db.query(PointOfContact).filter(PointOfContact.is_default.is_(True))
        if except_id is not None:
            query = query.filter(PointOfContact.id != except_id)
        for poc in query.all():
            poc.is_default = False

    def list_contacts(self) -> List[PointOfContact]:
        return self.db.query(PointOfContact).order_by(
            PointOfContact.is_default.desc(), PointOfContact.name.asc()
        ).all()

    def get_contact(self, contact_id: UUID) -> PointOfContact:
        poc = self.db.get(PointOfContact, contact_id)
        if not poc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Punto de contacto no encontrado"
            )
        return poc

    def get_default(self):
        return self.db.query(PointOfContact).filter(PointOfContact.is_default.is_(True)).first()

    def create_contact(self, data: PointOfContactCreate) -> PointOfContact:
        # El primer contacto creado queda por defecto
        is_first = self.db.query(PointOfContact).count() == 0
        poc = PointOfContact(**data.model_dump())
        if is_first:
            poc.is_default = True
        if poc.is_default:
            self._clear_default()
        self.db.add(poc)
        self.db.commit()
        self.db.refresh(poc)
        return poc

    def update_contact(self, contact_id: UUID, data: PointOfContactUpdate) -> PointOfContact:
        poc = self.get_contact(contact_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(poc, field, value)
        if poc.is_default:
            self._clear_default(except_id=poc.id)
        self.db.commit()
        self.db.refresh(poc)
        return poc

    def set_default(self, contact_id: UUID) -> PointOfContact:
        poc = self.get_contact(contact_id)
        self._clear_default(except_id=poc.id)
        poc.is_default = True
        self.db.commit()
        self.db.refresh(poc)
        return poc

    def delete_contact(self, contact_id: UUID) -> None:
        poc = self.get_contact(contact_id)
        self.db.delete(poc)
        self.db.commit()
