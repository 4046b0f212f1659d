"""
Router para Clientes y Proveedores
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, VIEW_ROLES, EDIT_ROLES, DELETE_ROLES
from app.modules.customers.service import CustomerService, VendorService
from app.modules.customers.schemas import (
    CustomerCreate, CustomerUpdate, CustomerOut, CustomerList,
    VendorCreate, VendorUpdate, VendorOut, VendorList
)

customers_router = APIRouter(prefix="/customers", tags=["Customers"])
vendors_router = APIRouter(prefix="/vendors", tags=["Vendors"])


# ===== CUSTOMERS =====

@customers_router.post("/", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(
    customer_data: CustomerCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    """
    Crear un nuevo cliente

    - **gstin**: único entre clientes
    - **contacts**: queda exactamente un contacto primario
    - **shipping_addresses**: queda exactamente una dirección por defecto
    """
    return CustomerService(db).create_customer(customer_data)


@customers_router.get("/", response_model=CustomerList)
def list_customers(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None, description="Búsqueda por nombre o GSTIN"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    customers, total = CustomerService(db).get_customers(limit, offset, search)
    return CustomerList(items=customers, total=total, limit=limit, offset=offset)


@customers_router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return CustomerService(db).get_customer(customer_id)


@customers_router.patch("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: UUID,
    update_data: CustomerUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return CustomerService(db).update_customer(customer_id, update_data)


@customers_router.delete("/{customer_id}")
def delete_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(DELETE_ROLES))
):
    return CustomerService(db).delete_customer(customer_id)


# ===== VENDORS =====

@vendors_router.post("/", response_model=VendorOut, status_code=status.HTTP_201_CREATED)
def create_vendor(
    vendor_data: VendorCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return VendorService(db).create_vendor(vendor_data)


@vendors_router.get("/", response_model=VendorList)
def list_vendors(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    vendors, total = VendorService(db).get_vendors(limit, offset, search)
    return VendorList(items=vendors, total=total, limit=limit, offset=offset)


@vendors_router.get("/{vendor_id}", response_model=VendorOut)
def get_vendor(
    vendor_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return VendorService(db).get_vendor(vendor_id)


@vendors_router.patch("/{vendor_id}", response_model=VendorOut)
def update_vendor(
    vendor_id: UUID,
    update_data: VendorUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return VendorService(db).update_vendor(vendor_id, update_data)


@vendors_router.delete("/{vendor_id}")
def delete_vendor(
    vendor_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(DELETE_ROLES))
):
    return VendorService(db).delete_vendor(vendor_id)
