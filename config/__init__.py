"""Configuración estática del sitio objetivo (URL, selectores, scripts de página)."""
