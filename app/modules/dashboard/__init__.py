"""
Módulo de tablero: contadores y documentos recientes de ventas
"""
