from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import date, datetime

from app.modules.sales.models import DocumentStatus
from app.modules.sales.schemas import LineItemIn, LineItemOut


class PurchaseOrderCreate(BaseModel):
    vendor_id: UUID
    order_date: date = Field(default_factory=date.today)
    delivery_address: Optional[str] = Field(None, description="Por defecto la dirección de entrega de la empresa")
    line_items: List[LineItemIn] = Field(..., min_length=1)
    point_of_contact_id: Optional[UUID] = None
    notes: Optional[str] = None


class PurchaseOrderUpdate(BaseModel):
    vendor_id: Optional[UUID] = None
    order_date: Optional[date] = None
    delivery_address: Optional[str] = None
    line_items: Optional[List[LineItemIn]] = Field(None, min_length=1)
    point_of_contact_id: Optional[UUID] = None
    notes: Optional[str] = None


class PurchaseOrderStatusUpdate(BaseModel):
    status: DocumentStatus


class PurchaseOrderOut(BaseModel):
    id: UUID
    po_number: str
    vendor_id: UUID
    vendor_name: str
    vendor_gstin: Optional[str] = None
    vendor_address: Optional[str] = None
    order_date: date
    delivery_address: Optional[str] = None
    line_items: List[LineItemOut]
    sub_total: Decimal
    gst_total: Decimal
    total: Decimal
    point_of_contact_id: Optional[UUID] = None
    notes: Optional[str] = None
    status: DocumentStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PurchaseOrderList(BaseModel):
    items: List[PurchaseOrderOut]
    total: int
    limit: int
    offset: int
