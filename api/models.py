"""
Modelos de datos (DTOs) para la API REST.
Define los schemas de respuesta usando Pydantic.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from scraper.models import StoredEmisor


class CamelModel(BaseModel):
    """Serializa los campos en camelCase (contrato público de la API)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Pagination(CamelModel):
    page: int
    limit: int
    total_items: int
    total_pages: int


class EmisoresPageResponse(CamelModel):
    """Response de GET /api/v1/emisores."""
    data: List[StoredEmisor]
    pagination: Pagination
    last_update: Optional[str] = None


class EmisorResponse(CamelModel):
    """Response de GET /api/v1/emisores/{rnc}."""
    data: StoredEmisor
    last_update: Optional[str] = None


class SearchResponse(CamelModel):
    """Response de GET /api/v1/emisores/buscar."""
    data: List[StoredEmisor]
    count: int
    query: str
    last_update: Optional[str] = None


class ServiceStatus(CamelModel):
    total_records: int
    last_update: Optional[str] = None
    is_updating: bool
    schedule: Optional[str] = None
    next_update: Optional[str] = None


class StatusResponse(BaseModel):
    """Response de GET /api/v1/status."""
    status: ServiceStatus

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": {
                    "totalRecords": 1520,
                    "lastUpdate": "2025-05-20T07:00:03+00:00",
                    "isUpdating": False,
                    "schedule": "0 3 * * *",
                    "nextUpdate": "2025-05-21T03:00:00-04:00",
                }
            }
        }
    )


class UpdateResponse(BaseModel):
    """Response de POST /api/v1/actualizar."""
    message: str
    status: str = "updating"


class HealthResponse(BaseModel):
    """Response del endpoint /health."""
    status: str = Field(..., description="Estado del servicio")
    version: str = Field(..., description="Versión de la API")
    uptime: float = Field(..., description="Segundos desde el arranque")


class ErrorResponse(BaseModel):
    """Response estándar de error."""
    status: int = Field(..., description="Código HTTP")
    detail: str = Field(..., description="Mensaje de error")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": 400,
                "detail": "El término de búsqueda debe tener al menos 3 caracteres.",
            }
        }
    )
