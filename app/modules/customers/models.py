"""
Modelos SQLAlchemy para Clientes y Proveedores
"""
from sqlalchemy import Column, String, Text, JSON
from app.database.database import Base
from app.common.mixins import BaseMixin


class Customer(Base, BaseMixin):
    """
    Cliente

    contacts: [{id, name, email, phone, is_primary}]
    billing_address: {id, line1, line2, city, state, pincode, is_default}
    shipping_addresses: [{id, line1, line2, city, state, pincode, is_default}]
    """
    __tablename__ = "customers"

    name = Column(String(200), nullable=False, index=True)
    gstin = Column(String(15), nullable=True, index=True)
    contacts = Column(JSON, nullable=False, default=list)
    billing_address = Column(JSON, nullable=True)
    shipping_addresses = Column(JSON, nullable=False, default=list)

    @property
    def primary_contact(self):
        return next((c for c in self.contacts or [] if c.get("is_primary")), None)

    @property
    def default_shipping_address(self):
        return next((a for a in self.shipping_addresses or [] if a.get("is_default")), None)


class Vendor(Base, BaseMixin):
    """Proveedor"""
    __tablename__ = "vendors"

    name = Column(String(200), nullable=False, index=True)
    gstin = Column(String(15), nullable=True)
    address = Column(Text, nullable=True)
    contact_person = Column(String(200), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
