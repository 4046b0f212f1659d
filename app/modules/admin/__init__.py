"""
Módulo de Administración de datos (solo Admin): estadísticas, CSV por
colección, respaldo/restauración JSON, borrado y verificación de integridad.
"""
