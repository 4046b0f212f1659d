"""
Esquemas Pydantic para Clientes y Proveedores
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from app.common.validators import validate_gstin, validate_pincode, clean_gstin


def _check_gstin(v: Optional[str]) -> Optional[str]:
    v = clean_gstin(v)
    if v and not validate_gstin(v):
        raise ValueError('GSTIN inválido. Debe tener 15 caracteres (ej: 27AAPFU0939F1ZV)')
    return v


# ===== SUB-ENTIDADES =====

class ContactPerson(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    is_primary: bool = False


class Address(BaseModel):
    id: Optional[str] = None
    line1: str = Field(..., min_length=1, max_length=255)
    line2: Optional[str] = Field(None, max_length=255)
    city: str = Field("", max_length=100)
    state: str = Field("", max_length=100)
    pincode: Optional[str] = Field(None, max_length=10)
    is_default: bool = False

    @field_validator('pincode')
    @classmethod
    def validate_pin(cls, v):
        if v is None or v.strip() == "":
            return None
        if not validate_pincode(v):
            raise ValueError('PIN code inválido (6 dígitos)')
        return v.strip()


# ===== CUSTOMER =====

class CustomerBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Nombre del cliente")
    gstin: Optional[str] = Field(None, description="GSTIN (opcional, único)")
    contacts: List[ContactPerson] = Field(default_factory=list)
    billing_address: Optional[Address] = None
    shipping_addresses: List[Address] = Field(default_factory=list)

    @field_validator('gstin')
    @classmethod
    def validate_customer_gstin(cls, v):
        return _check_gstin(v)


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    gstin: Optional[str] = None
    contacts: Optional[List[ContactPerson]] = None
    billing_address: Optional[Address] = None
    shipping_addresses: Optional[List[Address]] = None

    @field_validator('gstin')
    @classmethod
    def validate_customer_gstin(cls, v):
        return _check_gstin(v)


class CustomerOut(CustomerBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CustomerList(BaseModel):
    items: List[CustomerOut]
    total: int
    limit: int
    offset: int


# ===== VENDOR =====

class VendorBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Nombre del proveedor")
    gstin: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = Field(None, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)

    @field_validator('gstin')
    @classmethod
    def validate_vendor_gstin(cls, v):
        return _check_gstin(v)


class VendorCreate(VendorBase):
    pass


class VendorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    gstin: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = Field(None, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)

    @field_validator('gstin')
    @classmethod
    def validate_vendor_gstin(cls, v):
        return _check_gstin(v)


class VendorOut(VendorBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VendorList(BaseModel):
    items: List[VendorOut]
    total: int
    limit: int
    offset: int
