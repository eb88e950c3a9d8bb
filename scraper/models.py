"""Modelos de datos para el proceso de extracción, transformación y carga."""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field


# Orden posicional de las columnas del CSV publicado por DGII
CSV_COLUMNS = (
    "orden",
    "rnc",
    "razon_social",
    "nombre_comercial",
    "fecha_autorizacion",
    "fecha_limite",
)


class EmisorRecord(BaseModel):
    """Fila normalizada del listado de emisores electrónicos."""
    orden: str = ""
    rnc: str = ""
    razon_social: str = ""
    nombre_comercial: str = ""
    fecha_autorizacion: str = ""
    fecha_limite: str = ""

    def as_row(self) -> tuple:
        """Valores en el orden de las columnas de la tabla."""
        return tuple(getattr(self, column) for column in CSV_COLUMNS)


class StoredEmisor(EmisorRecord):
    """Registro tal como está persistido (con identidad y fecha de inserción)."""
    id: int
    created_at: Optional[str] = None


class DownloadCandidate(BaseModel):
    """Archivo del directorio de descargas que podría ser el CSV buscado."""
    path: Path
    size_bytes: int = Field(..., ge=0)
    modified_time: float

    @property
    def name(self) -> str:
        return self.path.name
