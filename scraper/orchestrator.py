"""Orquestador del proceso completo de descarga → transformación → carga."""

import logging
from pathlib import Path
from typing import Optional

from scraper.csv_processor import CsvProcessor
from scraper.database import DatabaseService
from scraper.dgii import DgiiCsvScraper

logger = logging.getLogger(__name__)


class ProcessOrchestrator:
    """Ejecuta una pasada completa contra una base de datos compartida."""

    def __init__(
        self,
        scraper: DgiiCsvScraper,
        database: DatabaseService,
        processor: Optional[CsvProcessor] = None,
        keep_downloads: bool = False,
    ):
        """
        Args:
            scraper: Extracción del CSV desde el portal
            database: Almacenamiento destino (no se cierra aquí)
            processor: Transformador del CSV (default: CsvProcessor())
            keep_downloads: Si True, conserva el CSV descargado tras la carga
        """
        self.scraper = scraper
        self.database = database
        self.processor = processor or CsvProcessor()
        self.keep_downloads = keep_downloads

    async def run_full_process(self) -> int:
        """
        Descarga el CSV, lo transforma y reemplaza el contenido de la tabla.

        Los errores de transformación y almacenamiento no se reintentan.

        Returns:
            Número de registros cargados
        """
        logger.info("🚀 Iniciando proceso de actualización de datos DGII")

        await self.database.init()
        await self.database.ensure_schema()

        csv_file = await self.scraper.download_csv()
        records = self.processor.parse(csv_file)
        count = await self.database.replace_all(records)

        logger.info("✅ Proceso completado exitosamente!")
        logger.info(f"📊 Registros procesados: {count}")
        logger.info(f"💾 Base de datos: {self.database.db_path}")

        if not self.keep_downloads:
            self._remove_download(csv_file)
        return count

    @staticmethod
    def _remove_download(csv_file: Path) -> None:
        try:
            Path(csv_file).unlink()
            logger.info("🗑️ Archivo CSV temporal eliminado")
        except OSError as e:
            logger.warning(f"⚠️ No se pudo eliminar {csv_file}: {e}")
