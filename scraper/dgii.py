"""
Scraper del listado de emisores electrónicos de DGII.
Implementa el flujo completo: navegación → búsqueda del botón → descarga del CSV.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from playwright.async_api import (
    Browser, Download, ElementHandle, Error as PlaywrightError, Page,
    TimeoutError as PlaywrightTimeoutError, async_playwright,
)

from config.dgii_selectors import BROWSER_ARGS, DEBUG_SCREENSHOT_NAME, DGII_URL, FILE_EXTENSION
from scraper.download_detector import DownloadDetector
from scraper.errors import ElementNotFoundError, NavigationTimeoutError
from scraper.locator import ElementLocator
from scraper.retry import retry_operation
from scraper.utils import ensure_directory, safe_close_browser

logger = logging.getLogger(__name__)


class DgiiCsvScraper:
    """Descarga el CSV de emisores electrónicos desde el portal de DGII."""

    def __init__(
        self,
        download_dir: Path,
        url: str = DGII_URL,
        headless: bool = True,
        navigation_timeout_ms: int = 30000,
        download_timeout: float = 60.0,
        max_retries: int = 3,
        retry_delay: float = 5.0,
        locator: Optional[ElementLocator] = None,
        detector: Optional[DownloadDetector] = None,
        extension: str = FILE_EXTENSION,
    ):
        self.download_dir = Path(download_dir)
        self.url = url
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms
        self.download_timeout = download_timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.locator = locator or ElementLocator(max_retries=max_retries)
        self.detector = detector or DownloadDetector()
        self.extension = extension

    async def download_csv(self) -> Path:
        """
        Ejecuta la extracción completa con reintentos.

        Cada intento abre una página nueva y navega desde cero. El navegador
        se cierra una sola vez, haya éxito o error.

        Returns:
            Ruta absoluta del CSV descargado

        Raises:
            RetryExhaustedError: Si todos los intentos fallan
        """
        logger.info("🚀 Iniciando descarga del CSV...")
        self.download_dir = ensure_directory(self.download_dir)

        async with async_playwright() as p:
            browser = None
            try:
                browser = await p.chromium.launch(
                    headless=self.headless,
                    args=BROWSER_ARGS,
                    timeout=self.navigation_timeout_ms,
                )
                return await retry_operation(
                    lambda: self.perform_download(browser),
                    max_attempts=self.max_retries,
                    delay=self.retry_delay,
                    label="Descarga del CSV",
                )
            finally:
                await safe_close_browser(browser)

    async def perform_download(self, browser: Browser) -> Path:
        """Un intento de extracción: navegar → localizar → activar → detectar."""
        context = await browser.new_context(accept_downloads=True)
        page = await context.new_page()
        pending_saves: List[asyncio.Task] = []
        page.on("download", lambda download: pending_saves.append(
            asyncio.ensure_future(self._save_download(download))
        ))

        try:
            await self.navigate(page)

            try:
                trigger = await self.locator.locate(page)
            except ElementNotFoundError:
                await self._save_debug_screenshot(page)
                raise

            before = self.detector.snapshot(self.download_dir)
            logger.info(f"📂 Archivos antes de la descarga: {sorted(before)}")

            await self.activate(page, trigger)

            csv_path = await self.detector.wait_for_file(
                self.download_dir, before, self.extension, self.download_timeout
            )
            logger.info(f"✓ CSV descargado: {csv_path}")
            return csv_path
        finally:
            try:
                await context.close()
            except PlaywrightError as e:
                logger.warning(f"⚠️ Error al cerrar la página: {e}")
            if pending_saves:
                await asyncio.gather(*pending_saves, return_exceptions=True)

    async def navigate(self, page: Page) -> None:
        """Carga la página objetivo esperando red inactiva y DOM listo."""
        logger.info("🌐 Navegando a la página de DGII...")
        try:
            await page.goto(self.url, wait_until="networkidle", timeout=self.navigation_timeout_ms)
            await page.wait_for_load_state("domcontentloaded", timeout=self.navigation_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeoutError(self.url, self.navigation_timeout_ms) from e
        logger.info("✅ Página cargada")

    async def activate(self, page: Page, trigger: ElementHandle) -> None:
        """Click directo; si falla, se despacha un evento click sintético."""
        try:
            await trigger.click(timeout=self.navigation_timeout_ms)
            logger.info(f"🖱️  Se hizo clic en el botón {self.locator.keyword}")
        except PlaywrightError as e:
            logger.warning(f"⚠️ Click directo falló ({e}), despachando evento click...")
            await trigger.dispatch_event("click")
            logger.info("🖱️  Evento click despachado")

    async def _save_download(self, download: Download) -> None:
        target = self.download_dir / download.suggested_filename
        try:
            await download.save_as(target)
            logger.info(f"💾 Descarga guardada: {target}")
        except PlaywrightError as e:
            logger.warning(f"⚠️ No se pudo guardar la descarga {download.suggested_filename}: {e}")

    async def _save_debug_screenshot(self, page: Page) -> None:
        screenshot_path = self.download_dir / DEBUG_SCREENSHOT_NAME
        try:
            await page.screenshot(path=str(screenshot_path), full_page=True)
            logger.info(f"📸 Se guardó una captura de pantalla en: {screenshot_path}")
        except PlaywrightError as e:
            logger.warning(f"⚠️ No se pudo guardar la captura de pantalla: {e}")
