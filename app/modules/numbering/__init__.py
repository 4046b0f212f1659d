"""
Numeración de documentos.

Una secuencia por tipo de documento (cotización, orden de venta, orden de
despacho, orden de compra) con prefijo, siguiente número y sufijo.

Formato: prefijo + número con 4 dígitos + sufijo. Los marcadores {CUST}
(documentos de venta) y {VEND} (órdenes de compra) se reemplazan por el
código de la contraparte: primeras 4 letras del nombre sin espacios, en
mayúsculas.

La asignación bloquea la fila de la secuencia (SELECT ... FOR UPDATE) y se
confirma en la misma transacción que el documento: sin huecos ni duplicados.
"""
