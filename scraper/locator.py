"""
Localizador del disparador de descarga.

El markup del portal no es confiable, así que se prueban matchers cada vez más
permisivos detrás de una sola interfaz `locate(page)`:

1. Selectores CSS estructurales (valor exacto, href/onclick, action de formulario)
2. XPath por texto y atributos, sin distinguir mayúsculas
3. Recorrido completo del DOM evaluado dentro de la página

Cada matcher puede probarse por separado contra un DOM sintético.
"""

import asyncio
import logging
from typing import Optional, Sequence

from playwright.async_api import ElementHandle, Error as PlaywrightError, Page

from config.dgii_selectors import (
    DOM_SCAN_SCRIPT, LAZY_SCROLL_SCRIPT, TRIGGER_KEYWORD, VISIBILITY_SCRIPT,
    structural_selectors, xpath_queries,
)
from scraper.errors import ElementNotFoundError

logger = logging.getLogger(__name__)


class ElementLocator:
    """Encuentra un único elemento visible que dispare la descarga."""

    def __init__(
        self,
        keyword: str = TRIGGER_KEYWORD,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        selectors: Optional[Sequence[str]] = None,
        xpaths: Optional[Sequence[str]] = None,
    ):
        """
        Args:
            keyword: Palabra clave del disparador (ej: "CSV")
            max_retries: Pasadas completas antes de rendirse (>= 1)
            retry_delay: Segundos de espera entre pasadas
            selectors: Selectores CSS de la etapa 1 (default: derivados de keyword)
            xpaths: Consultas XPath de la etapa 2 (default: derivadas de keyword)
        """
        if max_retries < 1:
            raise ValueError("max_retries debe ser >= 1")
        self.keyword = keyword
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.selectors = list(selectors) if selectors is not None else structural_selectors(keyword)
        self.xpaths = list(xpaths) if xpaths is not None else xpath_queries(keyword)

    async def locate(self, page: Page) -> ElementHandle:
        """
        Ejecuta la cascada de matchers hasta encontrar el disparador.

        Raises:
            ElementNotFoundError: Si ninguna pasada encuentra un elemento visible
        """
        for attempt in range(self.max_retries):
            if attempt > 0:
                logger.info(f"🔄 Reintento {attempt} para encontrar el botón {self.keyword}...")
                await asyncio.sleep(self.retry_delay)
                await self._trigger_lazy_content(page)

            element = await self.find_by_selectors(page)
            if element is None:
                element = await self.find_by_xpath(page)
            if element is None:
                element = await self.find_by_dom_scan(page)
            if element is not None:
                return element

        raise ElementNotFoundError(self.keyword, self.max_retries)

    async def find_by_selectors(self, page: Page) -> Optional[ElementHandle]:
        """Etapa 1: selectores estructurales en orden de prioridad."""
        return await self._first_visible(page, self.selectors, "selector")

    async def find_by_xpath(self, page: Page) -> Optional[ElementHandle]:
        """Etapa 2: texto y atributos de tags clicables."""
        logger.info(f"🔍 Buscando botón por contenido de texto '{self.keyword}'...")
        return await self._first_visible(page, self.xpaths, "XPath")

    async def find_by_dom_scan(self, page: Page) -> Optional[ElementHandle]:
        """Etapa 3: recorrido de todo el DOM (texto, value, onclick, href)."""
        logger.info("🔍 Recorriendo el DOM completo...")
        try:
            handle = await page.evaluate_handle(DOM_SCAN_SCRIPT, self.keyword)
        except PlaywrightError as e:
            logger.warning(f"⚠️ Error en el recorrido del DOM: {e}")
            return None

        element = handle.as_element()
        if element is None:
            await handle.dispose()
            return None
        if not await self.is_interactable(element):
            await handle.dispose()
            return None
        logger.info(f"✓ Botón {self.keyword} encontrado por recorrido del DOM")
        return element

    async def is_interactable(self, element: ElementHandle) -> bool:
        """Ancho y alto > 0, visibility != hidden, display != none, opacity != 0."""
        try:
            return bool(await element.evaluate(VISIBILITY_SCRIPT))
        except PlaywrightError:
            # Elemento desprendido del DOM
            return False

    async def _first_visible(self, page: Page, queries: Sequence[str], kind: str) -> Optional[ElementHandle]:
        for query in queries:
            try:
                candidates = await page.query_selector_all(query)
            except PlaywrightError:
                continue
            for element in candidates:
                if await self.is_interactable(element):
                    logger.info(f"✓ Botón {self.keyword} encontrado con {kind}: {query}")
                    return element
        return None

    async def _trigger_lazy_content(self, page: Page) -> None:
        try:
            await page.evaluate(LAZY_SCROLL_SCRIPT)
        except PlaywrightError as e:
            logger.warning(f"⚠️ No se pudo desplazar la página: {e}")
