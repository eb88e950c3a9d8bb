"""
Detector de descargas por sondeo del directorio.

El navegador no emite una señal confiable de "descarga terminada", así que la
completitud se aproxima por tamaño y fecha de modificación. Nunca se lee el
contenido del archivo.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from config.dgii_selectors import FILE_EXTENSION, PARTIAL_DOWNLOAD_EXTENSIONS
from scraper.errors import DownloadTimeoutError
from scraper.models import DownloadCandidate
from scraper.utils import list_files, stat_file

logger = logging.getLogger(__name__)


class DownloadDetector:
    """Espera a que aparezca (o se actualice) el archivo descargado."""

    def __init__(
        self,
        poll_interval: float = 2.0,
        min_size_bytes: int = 100,
        recent_window: float = 30.0,
        initial_wait: float = 3.0,
        partial_extensions: Iterable[str] = PARTIAL_DOWNLOAD_EXTENSIONS,
    ):
        """
        Args:
            poll_interval: Segundos entre revisiones del directorio
            min_size_bytes: Por debajo de este tamaño el archivo se considera aún escribiéndose
            recent_window: Segundos hacia atrás en que una modificación cuenta como "reciente"
            initial_wait: Espera antes del primer sondeo para que la descarga comience
            partial_extensions: Extensiones de descargas en curso
        """
        self.poll_interval = poll_interval
        self.min_size_bytes = min_size_bytes
        self.recent_window = recent_window
        self.initial_wait = initial_wait
        self.partial_extensions = tuple(ext.lower() for ext in partial_extensions)

    def snapshot(self, directory: Union[str, Path]) -> Set[str]:
        """Nombres presentes en el directorio antes de activar el disparador."""
        return set(list_files(directory))

    def _matches(self, name: str, extension: str) -> bool:
        lowered = name.lower()
        if lowered.endswith(self.partial_extensions):
            return False
        return lowered.endswith(extension.lower())

    def candidates(self, directory: Union[str, Path], extension: str) -> List[DownloadCandidate]:
        """Archivos con la extensión esperada (excluye parciales)."""
        directory = Path(directory)
        found = []
        for name in list_files(directory):
            if not self._matches(name, extension):
                continue
            candidate = stat_file(directory / name)
            if candidate is not None:
                found.append(candidate)
        return found

    def find_completed(
        self,
        directory: Union[str, Path],
        before: Set[str],
        extension: str = FILE_EXTENSION,
    ) -> Optional[DownloadCandidate]:
        """
        Un sondeo: primero archivos nuevos, luego archivos modificados recientemente.

        Un archivo nuevo debe superar `min_size_bytes`; uno que ya existía y fue
        reescrito hace poco se acepta con cualquier tamaño.
        """
        candidates = self.candidates(directory, extension)

        for candidate in candidates:
            if candidate.name in before:
                continue
            if candidate.size_bytes > self.min_size_bytes:
                return candidate
            logger.info(
                f"⏳ Archivo encontrado pero es muy pequeño ({candidate.size_bytes} bytes), esperando..."
            )

        # El navegador puede reutilizar un nombre existente
        threshold = time.time() - self.recent_window
        recent = [
            c for c in candidates
            if c.name in before and c.modified_time > threshold
        ]
        if recent:
            newest = max(recent, key=lambda c: c.modified_time)
            logger.info(f"📄 Archivo modificado recientemente: {newest.name}")
            return newest
        return None

    def most_recent(self, directory: Union[str, Path], extension: str = FILE_EXTENSION) -> Optional[DownloadCandidate]:
        """El archivo con la extensión esperada de modificación más reciente."""
        candidates = self.candidates(directory, extension)
        if not candidates:
            return None
        return max(candidates, key=lambda c: c.modified_time)

    async def wait_for_file(
        self,
        directory: Union[str, Path],
        before: Set[str],
        extension: str = FILE_EXTENSION,
        timeout: float = 60.0,
    ) -> Path:
        """
        Sondea el directorio hasta encontrar el archivo descargado.

        Al agotar el timeout se usa el archivo más reciente con la extensión
        esperada, aunque sea anterior a la descarga.

        Returns:
            Ruta absoluta del archivo elegido

        Raises:
            DownloadTimeoutError: Si no existe ningún archivo con la extensión esperada
        """
        directory = Path(directory)
        start = time.monotonic()
        logger.info("⏳ Esperando la descarga del archivo...")

        if self.initial_wait > 0:
            await asyncio.sleep(min(self.initial_wait, timeout))

        checks = 0
        while True:
            checks += 1
            candidate = self.find_completed(directory, before, extension)
            if candidate is not None:
                logger.info(f"✅ Archivo válido: {candidate.name} ({candidate.size_bytes} bytes)")
                return candidate.path

            elapsed = time.monotonic() - start
            if elapsed >= timeout:
                break
            logger.debug(f"Verificación {checks}, esperando {self.poll_interval} segundos...")
            await asyncio.sleep(min(self.poll_interval, max(timeout - elapsed, 0)))

        fallback = self.most_recent(directory, extension)
        if fallback is not None:
            logger.warning(
                f"⚠️ No se detectó descarga nueva, usando el archivo más reciente: {fallback.name}"
            )
            return fallback.path

        raise DownloadTimeoutError(time.monotonic() - start)
