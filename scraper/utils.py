"""Utilidades de directorios, archivos y liberación del navegador."""

import logging
from pathlib import Path
from typing import List, Optional, Union

from scraper.models import DownloadCandidate

logger = logging.getLogger(__name__)


def ensure_directory(path: Union[str, Path]) -> Path:
    """Crea el directorio (y sus padres) si no existe. Devuelve la ruta absoluta."""
    directory = Path(path).resolve()
    if not directory.exists():
        directory.mkdir(parents=True, exist_ok=True)
        logger.info(f"📁 Directorio creado: {directory}")
    return directory


def list_files(directory: Union[str, Path]) -> List[str]:
    """Nombres de los archivos regulares del directorio (vacío si no existe)."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(entry.name for entry in directory.iterdir() if entry.is_file())


def stat_file(path: Union[str, Path]) -> Optional[DownloadCandidate]:
    """
    Tamaño y fecha de modificación de un archivo.

    Returns:
        DownloadCandidate, o None si el archivo desapareció entre el listado y el stat
        (el navegador renombra los parciales al terminar).
    """
    path = Path(path)
    try:
        stats = path.stat()
    except FileNotFoundError:
        return None
    return DownloadCandidate(
        path=path.resolve(),
        size_bytes=stats.st_size,
        modified_time=stats.st_mtime,
    )


async def safe_close_browser(browser) -> None:
    """Cierra el navegador registrando (sin propagar) cualquier error."""
    if browser is None:
        return
    try:
        await browser.close()
        logger.info("✓ Navegador cerrado correctamente")
    except Exception as e:
        logger.error(f"❌ Error al cerrar el navegador: {e}")
