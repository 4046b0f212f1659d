"""
Esquemas Pydantic para el módulo de Ventas
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from decimal import Decimal
from typing import Optional, List, Dict, Any
from uuid import UUID
from datetime import date, datetime

from app.modules.sales.models import DocumentStatus


# ===== LÍNEAS =====

class LineItemIn(BaseModel):
    id: Optional[UUID] = Field(None, description="Id de la línea existente (revisión de orden de venta)")
    product_id: Optional[UUID] = None
    product_name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    hsn_code: Optional[str] = Field(None, max_length=20)
    quantity: Decimal = Field(..., gt=0)
    unit: str = Field("Nos", min_length=1, max_length=20)
    unit_price: Decimal = Field(..., ge=0)
    tax_rate: Decimal = Field(Decimal("18"), ge=0, le=100)

    @field_validator('unit_price')
    @classmethod
    def validate_price(cls, v):
        return v.quantize(Decimal('0.01'))


class LineItemOut(BaseModel):
    id: UUID
    product_id: Optional[UUID] = None
    product_name: str
    description: Optional[str] = None
    hsn_code: Optional[str] = None
    quantity: Decimal
    unit: str
    unit_price: Decimal
    tax_rate: Decimal
    total: Decimal

    class Config:
        from_attributes = True


class SalesOrderItemOut(LineItemOut):
    delivered_quantity: Decimal
    pending_quantity: Decimal


class DeliveryOrderItemOut(LineItemOut):
    sales_order_item_id: UUID


# ===== QUOTES =====

class QuoteCreate(BaseModel):
    customer_id: UUID
    contact_id: Optional[str] = Field(None, description="Contacto del cliente; por defecto el primario")
    shipping_address_id: Optional[str] = Field(None, description="Dirección de envío; por defecto la marcada")
    issue_date: date = Field(default_factory=date.today)
    expiry_date: Optional[date] = None
    line_items: List[LineItemIn] = Field(..., min_length=1)
    terms: Optional[List[str]] = Field(None, description="Por defecto los términos configurados")
    additional_description: Optional[str] = None
    point_of_contact_id: Optional[UUID] = None

    @model_validator(mode='after')
    def validate_dates(self):
        if self.expiry_date and self.expiry_date < self.issue_date:
            raise ValueError('La fecha de vencimiento no puede ser anterior a la de emisión')
        return self


class QuoteUpdate(BaseModel):
    customer_id: Optional[UUID] = None
    contact_id: Optional[str] = None
    shipping_address_id: Optional[str] = None
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    line_items: Optional[List[LineItemIn]] = Field(None, min_length=1)
    terms: Optional[List[str]] = None
    additional_description: Optional[str] = None
    point_of_contact_id: Optional[UUID] = None


class QuoteStatusUpdate(BaseModel):
    status: DocumentStatus


class QuoteOut(BaseModel):
    id: UUID
    quote_number: str
    revision_number: int
    display_number: str
    original_quote_id: Optional[UUID] = None
    customer_id: UUID
    customer_name: str
    customer_gstin: Optional[str] = None
    contact: Optional[Dict[str, Any]] = None
    billing_address: Optional[Dict[str, Any]] = None
    shipping_address: Optional[Dict[str, Any]] = None
    issue_date: date
    expiry_date: Optional[date] = None
    line_items: List[LineItemOut]
    sub_total: Decimal
    gst_total: Decimal
    total: Decimal
    terms: List[str]
    additional_description: Optional[str] = None
    point_of_contact_id: Optional[UUID] = None
    status: DocumentStatus
    linked_sales_order_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class QuoteList(BaseModel):
    items: List[QuoteOut]
    total: int
    limit: int
    offset: int


# ===== SALES ORDERS =====

class SalesOrderCreate(BaseModel):
    """Conversión de cotización aprobada en orden de venta"""
    client_po_number: Optional[str] = Field(None, max_length=100)
    order_date: date = Field(default_factory=date.today)


class SalesOrderRevise(BaseModel):
    line_items: List[LineItemIn] = Field(..., min_length=1)
    client_po_number: Optional[str] = Field(None, max_length=100)


class SalesOrderOut(BaseModel):
    id: UUID
    order_number: str
    linked_quote_id: Optional[UUID] = None
    quote_number: Optional[str] = None
    client_po_number: Optional[str] = None
    customer_id: UUID
    customer_name: str
    customer_gstin: Optional[str] = None
    contact: Optional[Dict[str, Any]] = None
    billing_address: Optional[Dict[str, Any]] = None
    shipping_address: Optional[Dict[str, Any]] = None
    order_date: date
    line_items: List[SalesOrderItemOut]
    sub_total: Decimal
    gst_total: Decimal
    total: Decimal
    terms: List[str]
    additional_description: Optional[str] = None
    point_of_contact_id: Optional[UUID] = None
    status: DocumentStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SalesOrderList(BaseModel):
    items: List[SalesOrderOut]
    total: int
    limit: int
    offset: int


# ===== DELIVERY ORDERS =====

class DeliveryLineIn(BaseModel):
    sales_order_item_id: UUID
    quantity: Decimal = Field(..., gt=0)


class DeliveryOrderCreate(BaseModel):
    sales_order_id: UUID
    delivery_date: date = Field(default_factory=date.today)
    vehicle_number: Optional[str] = Field(None, max_length=30)
    notes: Optional[str] = None
    line_items: List[DeliveryLineIn] = Field(..., min_length=1)

    @field_validator('vehicle_number')
    @classmethod
    def normalize_vehicle(cls, v):
        return v.strip().upper() if v else v


class DeliveryOrderUpdate(BaseModel):
    delivery_date: Optional[date] = None
    vehicle_number: Optional[str] = Field(None, max_length=30)
    notes: Optional[str] = None


class DeliveryOrderStatusUpdate(BaseModel):
    status: DocumentStatus


class DeliveryOrderOut(BaseModel):
    id: UUID
    delivery_number: str
    sales_order_id: UUID
    sales_order_number: str
    customer_id: UUID
    customer_name: str
    customer_gstin: Optional[str] = None
    contact: Optional[Dict[str, Any]] = None
    shipping_address: Optional[Dict[str, Any]] = None
    delivery_date: date
    vehicle_number: Optional[str] = None
    notes: Optional[str] = None
    status: DocumentStatus
    line_items: List[DeliveryOrderItemOut]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DeliveryOrderList(BaseModel):
    items: List[DeliveryOrderOut]
    total: int
    limit: int
    offset: int


# ===== PENDING ITEMS =====

class PendingItem(BaseModel):
    sales_order_id: UUID
    order_number: str
    customer_name: str
    order_date: date
    sales_order_item_id: UUID
    product_name: str
    unit: str
    ordered_quantity: Decimal
    delivered_quantity: Decimal
    pending_quantity: Decimal
