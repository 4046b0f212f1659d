"""
Módulo de email: SMTP + plantillas Jinja2, tareas Celery y notificaciones
de documentos de venta.
"""
