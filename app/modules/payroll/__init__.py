"""
Módulo de Nómina: empleados, cálculo de salarios, anticipos y permisos
"""
