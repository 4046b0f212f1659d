"""
Configuración de la empresa.

Documentos singleton (clave -> JSON):
- company_details: datos de la empresa, banco, dirección de entrega, notificaciones
- pdf_settings: plantilla y color de los PDF
- terms: términos por defecto de las cotizaciones

Además: puntos de contacto de la empresa (a lo sumo uno por defecto).
"""
