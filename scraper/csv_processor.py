"""Transformación del CSV descargado en registros normalizados."""

import csv
import io
import logging
from pathlib import Path
from typing import List, Sequence, Union

from scraper.errors import EmptyOrCorruptFileError
from scraper.models import CSV_COLUMNS, EmisorRecord

logger = logging.getLogger(__name__)


class CsvProcessor:
    """
    Convierte el CSV de DGII en una lista de EmisorRecord.

    El encabezado del archivo se descarta: los nombres de columna se
    imponen por posición, porque el encabezado publicado no es consistente.
    """

    def __init__(self, encoding: str = "utf-8-sig", delimiter: str = ",",
                 columns: Sequence[str] = CSV_COLUMNS):
        self.encoding = encoding
        self.delimiter = delimiter
        self.columns = tuple(columns)

    def parse(self, csv_path: Union[str, Path]) -> List[EmisorRecord]:
        """
        Lee y normaliza el archivo completo en memoria.

        Args:
            csv_path: Ruta al CSV descargado

        Returns:
            Registros en el orden del archivo

        Raises:
            FileNotFoundError: Si el archivo no existe
            EmptyOrCorruptFileError: Si el archivo está vacío o no tiene filas tras el encabezado
        """
        csv_path = Path(csv_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"El archivo CSV no existe: {csv_path}")

        logger.info(f"📄 Procesando CSV ({csv_path})...")
        content = csv_path.read_text(encoding=self.encoding, errors="replace")
        lines = content.splitlines()

        logger.info(f"Archivo CSV encontrado con {len(lines)} líneas.")
        if lines:
            logger.debug(f"Primera línea: {lines[0]}")

        if len(lines) <= 1 or not content.strip():
            raise EmptyOrCorruptFileError(f"El archivo CSV está vacío o dañado: {csv_path.name}")

        reader = csv.reader(io.StringIO(content, newline=""), delimiter=self.delimiter)
        next(reader, None)  # encabezado

        records = []
        for row in reader:
            if not any(field.strip() for field in row):
                continue
            records.append(self._to_record(row))

        if not records:
            raise EmptyOrCorruptFileError(
                f"El archivo CSV no contiene registros después del encabezado: {csv_path.name}"
            )

        logger.info(f"✓ {len(records)} registros leídos del CSV")
        return records

    def _to_record(self, row: Sequence[str]) -> EmisorRecord:
        values = {}
        for index, column in enumerate(self.columns):
            values[column] = row[index].strip() if index < len(row) else ""
        return EmisorRecord(**values)
