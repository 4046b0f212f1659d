from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime
import re

from app.modules.products.models import MovementType


def _check_hsn(v: Optional[str]) -> Optional[str]:
    if v is None or v.strip() == "":
        return None
    if not re.match(r'^[0-9]{4,8}$', v.strip()):
        raise ValueError('Código HSN inválido (4 a 8 dígitos)')
    return v.strip()


# ===== PRODUCT =====

class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    unit: str = Field("Nos", min_length=1, max_length=20)
    rate: Decimal = Field(Decimal("0"), ge=0, description="Precio unitario por defecto")
    hsn_code: Optional[str] = Field(None, max_length=20)

    @field_validator('hsn_code')
    @classmethod
    def validate_hsn(cls, v):
        return _check_hsn(v)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    rate: Optional[Decimal] = Field(None, ge=0)
    hsn_code: Optional[str] = Field(None, max_length=20)

    @field_validator('hsn_code')
    @classmethod
    def validate_hsn(cls, v):
        return _check_hsn(v)


class ProductOut(ProductBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProductList(BaseModel):
    items: List[ProductOut]
    total: int
    limit: int
    offset: int


# ===== STOCK =====

class StockMovementCreate(BaseModel):
    product_id: UUID
    type: MovementType
    quantity: Decimal = Field(..., gt=0)
    notes: Optional[str] = None


class StockMovementOut(BaseModel):
    id: UUID
    product_id: UUID
    product_name: str
    type: MovementType
    quantity: Decimal
    date: datetime
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class InventoryItem(BaseModel):
    product_id: UUID
    product_name: str
    unit: str
    current_stock: Decimal
    last_updated: Optional[datetime] = None


class StockImportError(BaseModel):
    row: int
    error: str


class StockImportResult(BaseModel):
    imported: int
    errors: List[StockImportError]
