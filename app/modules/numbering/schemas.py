from pydantic import BaseModel, Field, field_validator
from enum import Enum
from typing import Optional


class DocumentType(str, Enum):
    QUOTE = "quote"
    SALES_ORDER = "sales_order"
    DELIVERY_ORDER = "delivery_order"
    PURCHASE_ORDER = "purchase_order"


class NumberingFormat(BaseModel):
    prefix: str = Field("", max_length=30)
    next_number: int = Field(1, ge=1, description="Siguiente número a asignar")
    suffix: str = Field("", max_length=30)
    use_customer_prefix: bool = False

    @field_validator('prefix', 'suffix')
    @classmethod
    def strip_value(cls, v):
        return v.strip()

    class Config:
        from_attributes = True


class NumberingSettings(BaseModel):
    quote: NumberingFormat
    sales_order: NumberingFormat
    delivery_order: NumberingFormat
    purchase_order: NumberingFormat


class NumberingSettingsUpdate(BaseModel):
    quote: Optional[NumberingFormat] = None
    sales_order: Optional[NumberingFormat] = None
    delivery_order: Optional[NumberingFormat] = None
    purchase_order: Optional[NumberingFormat] = None


class NumberPreview(BaseModel):
    doc_type: DocumentType
    party_name: Optional[str] = None
    number: str
