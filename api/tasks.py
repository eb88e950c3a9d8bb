"""
Coordinación de la actualización de datos.

Pipeline: descarga del CSV → transformación → reemplazo de la tabla.
Solo puede haber una actualización en curso; una segunda solicitud concurrente
no tiene efecto.
"""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable, Optional

from api.config import Settings
from scraper.csv_processor import CsvProcessor
from scraper.database import DatabaseService
from scraper.dgii import DgiiCsvScraper
from scraper.download_detector import DownloadDetector
from scraper.locator import ElementLocator
from scraper.orchestrator import ProcessOrchestrator

logger = logging.getLogger(__name__)


class RefreshState:
    """Estado de la última actualización (un solo escritor: el coordinador)."""

    def __init__(self):
        self._last_success: Optional[datetime] = None
        self._in_progress = False

    @property
    def last_success(self) -> Optional[datetime]:
        return self._last_success

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    def try_begin(self) -> bool:
        """Marca el inicio si no hay otra en curso. Sin suspensión entre check y set."""
        if self._in_progress:
            return False
        self._in_progress = True
        return True

    def mark_success(self, when: Optional[datetime] = None) -> None:
        self._last_success = when or datetime.now(timezone.utc)

    def finish(self) -> None:
        self._in_progress = False

    def last_success_iso(self) -> Optional[str]:
        return self._last_success.isoformat() if self._last_success else None


class RefreshCoordinator:
    """Serializa la actualización completa frente a disparos concurrentes."""

    def __init__(self, pipeline: Callable[[], Awaitable[int]], state: Optional[RefreshState] = None):
        """
        Args:
            pipeline: Corrutina que ejecuta descarga → transformación → carga y
                devuelve el número de registros
            state: Estado compartido con la API (default: uno nuevo)
        """
        self.pipeline = pipeline
        self.state = state or RefreshState()
        self._background: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self.state.in_progress

    async def request_refresh(self) -> bool:
        """
        Ejecuta una actualización y espera a que termine.

        Returns:
            True si se ejecutó, False si ya había una en curso

        Raises:
            Cualquier error del pipeline (el estado vuelve a inactivo igualmente)
        """
        if not self.state.try_begin():
            logger.info("Ya hay una actualización en progreso. Omitiendo...")
            return False
        await self._execute()
        return True

    def launch(self) -> Optional[asyncio.Task]:
        """
        Inicia una actualización en segundo plano.

        Returns:
            La tarea creada, o None si ya había una en curso
        """
        if not self.state.try_begin():
            logger.info("Ya hay una actualización en progreso. Omitiendo...")
            return None

        task = asyncio.create_task(self._execute())
        task.add_done_callback(self._background_done)
        self._background = task
        return task

    async def wait_background(self) -> None:
        """Espera la actualización en segundo plano (si hay una)."""
        if self._background is not None and not self._background.done():
            await asyncio.gather(self._background, return_exceptions=True)

    async def _execute(self) -> int:
        logger.info("🔄 Iniciando actualización de datos DGII...")
        try:
            count = await self.pipeline()
            self.state.mark_success()
            logger.info(f"✅ Actualización completada: {self.state.last_success_iso()} ({count} registros)")
            return count
        except Exception as e:
            logger.error(f"❌ Error durante la actualización: {e}")
            raise
        finally:
            self.state.finish()

    @staticmethod
    def _background_done(task: asyncio.Task) -> None:
        if task.cancelled():
            logger.warning("⚠️ Actualización en segundo plano cancelada")
            return
        error = task.exception()
        if error is not None:
            logger.error(f"❌ Actualización en segundo plano falló: {error}")


def build_orchestrator(settings: Settings, database: DatabaseService) -> ProcessOrchestrator:
    """Arma el pipeline completo a partir de la configuración."""
    locator = ElementLocator(
        max_retries=settings.max_retries,
        retry_delay=settings.locator_retry_delay_seconds,
    )
    detector = DownloadDetector(
        poll_interval=settings.download_poll_interval_seconds,
        min_size_bytes=settings.download_min_size_bytes,
        recent_window=settings.download_recent_window_seconds,
        initial_wait=settings.download_initial_wait_seconds,
    )
    scraper = DgiiCsvScraper(
        download_dir=Path(settings.download_path),
        url=settings.dgii_url,
        headless=settings.browser_headless,
        navigation_timeout_ms=settings.navigation_timeout_ms,
        download_timeout=settings.download_timeout_seconds,
        max_retries=settings.max_retries,
        retry_delay=settings.retry_delay_seconds,
        locator=locator,
        detector=detector,
    )
    return ProcessOrchestrator(
        scraper=scraper,
        database=database,
        processor=CsvProcessor(encoding=settings.csv_encoding),
        keep_downloads=settings.keep_downloads,
    )
