"""
Módulo de Exportaciones: PDFs de documentos y nómina, y archivos CSV
"""
