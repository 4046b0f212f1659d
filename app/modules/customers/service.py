"""
Servicios de negocio para Clientes y Proveedores
"""
import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.common.validators import normalize_flagged_list
from app.modules.customers.models import Customer, Vendor
from app.modules.customers.schemas import (
    CustomerCreate, CustomerUpdate, VendorCreate, VendorUpdate
)

logger = logging.getLogger(__name__)


def normalize_billing_address(address: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """La dirección de facturación es única: solo necesita id y is_default."""
    if not address:
        return None
    entry = dict(address)
    entry["id"] = str(entry.get("id") or uuid4())
    entry["is_default"] = True
    return entry


def normalize_customer_lists(values: Dict[str, Any]) -> Dict[str, Any]:
    """Aplicar la normalización de banderas a las sub-listas presentes en `values`."""
    values = dict(values)
    if "contacts" in values:
        values["contacts"] = normalize_flagged_list(values["contacts"], "is_primary")
    if "shipping_addresses" in values:
        values["shipping_addresses"] = normalize_flagged_list(values["shipping_addresses"], "is_default")
    if "billing_address" in values:
        values["billing_address"] = normalize_billing_address(values["billing_address"])
    return values


def repair_customer(customer: Customer) -> bool:
    """
    Reparación de datos heredados: completa contacto, dirección de envío y
    dirección de facturación por defecto cuando faltan, y normaliza banderas.

    Retorna True si el cliente fue modificado.
    """
    original = (customer.contacts, customer.shipping_addresses, customer.billing_address)

    contacts = list(customer.contacts or [])
    if not contacts:
        contacts = [{"name": "Default Contact", "email": "", "phone": "", "is_primary": True}]

    shipping = list(customer.shipping_addresses or [])
    if not shipping:
        shipping = [{"line1": "Default Address", "city": "", "state": "", "pincode": "", "is_default": True}]

    billing = dict(customer.billing_address or {})
    if not billing:
        billing = {"line1": "Default Billing Address", "city": "", "state": "", "pincode": ""}

    normalized = normalize_customer_lists({
        "contacts": contacts,
        "shipping_addresses": shipping,
        "billing_address": billing,
    })
    changed = (
        normalized["contacts"],
        normalized["shipping_addresses"],
        normalized["billing_address"],
    ) != original
    if changed:
        customer.contacts = normalized["contacts"]
        customer.shipping_addresses = normalized["shipping_addresses"]
        customer.billing_address = normalized["billing_address"]
    return changed


class CustomerService:
    """Servicio principal para gestión de clientes"""

    def __init__(self, db: Session):
        self.db = db

    def _check_gstin_unique(self, gstin: Optional[str], exclude_id: Optional[UUID] = None):
        if not gstin:
            return
        query = self.db.query(Customer).filter(Customer.gstin == gstin)
        if exclude_id:
            query = query.filter(Customer.id != exclude_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe un cliente con el GSTIN {gstin}"
            )

    def create_customer(self, customer_data: CustomerCreate) -> Customer:
        """Crear un nuevo cliente"""
        try:
            self._check_gstin_unique(customer_data.gstin)

            values = normalize_customer_lists(customer_data.model_dump(mode="json"))
            customer = Customer(**values)

            self.db.add(customer)
            self.db.commit()
            self.db.refresh(customer)

            logger.info(f"Customer created: {customer.name} ({customer.id})")
            return customer

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating customer: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error creando cliente: {str(e)}"
            )

    def get_customers(
        self,
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None
    ) -> Tuple[List[Customer], int]:
        query = self.db.query(Customer)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Customer.name.ilike(pattern), Customer.gstin.ilike(pattern)))

        total = query.count()
        customers = query.order_by(Customer.name.asc()).offset(offset).limit(limit).all()
        return customers, total

    def get_customer(self, customer_id: UUID) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if not customer:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cliente no encontrado"
            )
        return customer

    def update_customer(self, customer_id: UUID, update_data: CustomerUpdate) -> Customer:
        try:
            customer = self.get_customer(customer_id)
            values = update_data.model_dump(mode="json", exclude_unset=True)

            if "gstin" in values:
                self._check_gstin_unique(values["gstin"], exclude_id=customer_id)
            if values.get("name") is None:
                values.pop("name", None)

            for field, value in normalize_customer_lists(values).items():
                setattr(customer, field, value)

            self.db.commit()
            self.db.refresh(customer)
            return customer

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating customer {customer_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error actualizando cliente: {str(e)}"
            )

    def delete_customer(self, customer_id: UUID) -> Dict[str, str]:
        """
        Eliminar cliente. Los documentos que lo referencian conservan su
        snapshot (nombre, contacto, direcciones) y no se eliminan.
        """
        customer = self.get_customer(customer_id)
        self.db.delete(customer)
        self.db.commit()
        logger.info(f"Customer deleted: {customer_id}")
        return {"message": "Cliente eliminado exitosamente"}


class VendorService:
    """Servicio para gestión de proveedores"""

    def __init__(self, db: Session):
        self.db = db

    def create_vendor(self, vendor_data: VendorCreate) -> Vendor:
        vendor = Vendor(**vendor_data.model_dump())
        self.db.add(vendor)
        self.db.commit()
        self.db.refresh(vendor)
        logger.info(f"Vendor created: {vendor.name} ({vendor.id})")
        return vendor

    def get_vendors(
        self,
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None
    ) -> Tuple[List[Vendor], int]:
        query = self.db.query(Vendor)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Vendor.name.ilike(pattern), Vendor.gstin.ilike(pattern)))
        total = query.count()
        vendors = query.order_by(Vendor.name.asc()).offset(offset).limit(limit).all()
        return vendors, total

    def get_vendor(self, vendor_id: UUID) -> Vendor:
        vendor = self.db.get(Vendor, vendor_id)
        if not vendor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Proveedor no encontrado"
            )
        return vendor

    def update_vendor(self, vendor_id: UUID, update_data: VendorUpdate) -> Vendor:
        vendor = self.get_vendor(vendor_id)
        for field, value in update_data.model_dump(exclude_unset=True).items():
            if field == "name" and value is None:
                continue
            setattr(vendor, field, value)
        self.db.commit()
        self.db.refresh(vendor)
        return vendor

    def delete_vendor(self, vendor_id: UUID) -> Dict[str, str]:
        vendor = self.get_vendor(vendor_id)
        self.db.delete(vendor)
        self.db.commit()
        logger.info(f"Vendor deleted: {vendor_id}")
        return {"message": "Proveedor eliminado exitosamente"}
