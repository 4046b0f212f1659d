"""
Módulo de Clientes y Proveedores

Clientes con varios contactos (uno primario), dirección de facturación y
varias direcciones de envío (una por defecto). Proveedores con dirección
única, usados en órdenes de compra.

Las sub-listas se normalizan en cada escritura: cada entrada recibe id y
queda a lo sumo una marcada como primaria / por defecto.
"""

from .models import Customer, Vendor

__all__ = ["Customer", "Vendor"]
