"""
API REST del listado de emisores electrónicos de DGII.

Este paquete expone endpoints REST de consulta sobre la base SQLite local y
un endpoint para forzar la actualización. El programador cron ejecuta el
pipeline completo: descarga del CSV → transformación → carga.
"""

__version__ = "1.0.0"
