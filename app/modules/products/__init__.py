"""
Productos e inventario

- Productos: catálogo con unidad, tarifa y código HSN
- Movimientos de stock: entradas/salidas manuales
- Niveles de inventario: stock actual = Σ entradas − Σ salidas
- Importación de ajustes de stock desde CSV
"""
