"""
Módulo de Compras: órdenes de compra a proveedores
"""
