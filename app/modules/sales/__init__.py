"""
Módulo de Ventas

Flujo: Cotización -> Orden de venta -> Órdenes de despacho

- Cotizaciones con revisiones (la anterior queda Superseded)
- Conversión de cotización aprobada en orden de venta
- Despachos parciales con control de cantidades entregadas por línea
- Ítems pendientes de despacho

Los documentos se referencian por id sin FK entre tipos: eliminar uno
nunca elimina otro en cascada.
"""
