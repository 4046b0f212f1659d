from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime
from enum import Enum
import re

from app.common.validators import validate_gstin, validate_ifsc, clean_gstin


DEFAULT_TERMS = [
    "Payment: 100% advance along with the order.",
    "Delivery: Within 2-3 weeks from the date of receipt of your firm order.",
    "Taxes: GST @ 18% will be charged extra.",
    "Validity: This offer is valid for 15 days.",
    "Warranty: One year against any manufacturing defects.",
]


# ===== COMPANY DETAILS =====

class BankDetails(BaseModel):
    name: str = ""
    branch: str = ""
    account_number: str = ""
    ifsc: str = ""

    @field_validator('ifsc')
    @classmethod
    def validate_ifsc_code(cls, v):
        if v and not validate_ifsc(v):
            raise ValueError('IFSC inválido (formato: AAAA0XXXXXX)')
        return v.upper()


class EmailSettings(BaseModel):
    enable_notifications: bool = False
    notification_email: Optional[str] = None  # Copia interna de cada notificación


class CompanyDetails(BaseModel):
    name: str = ""
    gstin: Optional[str] = None
    address: str = ""
    phone: str = ""
    email: str = ""
    website: Optional[str] = None
    bank_details: BankDetails = Field(default_factory=BankDetails)
    delivery_address: str = ""
    email_settings: EmailSettings = Field(default_factory=EmailSettings)

    @field_validator('gstin')
    @classmethod
    def validate_company_gstin(cls, v):
        v = clean_gstin(v)
        if v and not validate_gstin(v):
            raise ValueError('GSTIN inválido')
        return v


# ===== PDF =====

class PdfTemplate(str, Enum):
    CLASSIC = "classic"
    ADAPTEC = "adaptec"
    MODERN = "modern"
    ELEGANT = "elegant"
    BW = "BandW"


class PdfSettings(BaseModel):
    template: PdfTemplate = PdfTemplate.ADAPTEC
    accent_color: str = "#002f5f"
    show_gstin: bool = True
    show_hsn_code: bool = True
    show_bank_details: bool = True
    font_size: int = Field(9, ge=6, le=14)

    @field_validator('accent_color')
    @classmethod
    def validate_color(cls, v):
        if not re.match(r'^#[0-9a-fA-F]{6}$', v):
            raise ValueError('Color debe ser hexadecimal (#RRGGBB)')
        return v


# ===== TERMS =====

class TermsSettings(BaseModel):
    terms: List[str] = Field(default_factory=lambda: list(DEFAULT_TERMS))


# ===== POINTS OF CONTACT =====

class PointOfContactBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    designation: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=255)
    is_default: bool = False


class PointOfContactCreate(PointOfContactBase):
    pass


class PointOfContactUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    designation: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=255)
    is_default: Optional[bool] = None


class PointOfContactOut(PointOfContactBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
