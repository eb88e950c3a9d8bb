"""
Módulo de extracción y almacenamiento del listado de emisores de DGII.

Componentes:
- dgii: Scraper del portal (navegación → botón → descarga)
- locator: Localización del botón de descarga en cascada
- download_detector: Detección de la descarga por sondeo del directorio
- retry: Ejecutor genérico de reintentos
- csv_processor: Transformación del CSV en registros
- database: Almacenamiento SQLite
- orchestrator: Coordinador del proceso completo
- models: Modelos de datos
"""

from scraper.csv_processor import CsvProcessor
from scraper.database import DatabaseService
from scraper.dgii import DgiiCsvScraper
from scraper.download_detector import DownloadDetector
from scraper.locator import ElementLocator
from scraper.models import DownloadCandidate, EmisorRecord, StoredEmisor
from scraper.orchestrator import ProcessOrchestrator
from scraper.retry import retry_operation

__all__ = [
    "CsvProcessor",
    "DatabaseService",
    "DgiiCsvScraper",
    "DownloadDetector",
    "ElementLocator",
    "DownloadCandidate",
    "EmisorRecord",
    "StoredEmisor",
    "ProcessOrchestrator",
    "retry_operation",
]
