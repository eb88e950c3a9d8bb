"""
FastAPI application principal.

Expone endpoints REST para:
- Health check
- Listado paginado, búsqueda y consulta por RNC de emisores
- Estado de la última actualización
- Disparo manual de la actualización
"""

import logging
import math
import time
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import __version__
from api.config import Settings, settings
from api.models import (
    EmisorResponse, EmisoresPageResponse, ErrorResponse, HealthResponse, Pagination,
    SearchResponse, ServiceStatus, StatusResponse, UpdateResponse,
)
from api.rate_limiter import FixedWindowRateLimiter
from api.scheduler import RefreshScheduler
from api.tasks import RefreshCoordinator, build_orchestrator
from scraper.database import MAX_SEARCH_RESULTS, DatabaseService
from scraper.errors import ConcurrentRefreshRejected, DgiiError, InputValidationError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
MIN_QUERY_LENGTH = 3
RNC_MIN_LENGTH = 9
RNC_MAX_LENGTH = 11

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _error(status_code: int, detail: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": status_code, "detail": detail},
        headers=headers,
    )


def rate_limit(name: str):
    """Dependency que aplica el limitador `name` configurado en la app."""
    async def dependency(request: Request, response: Response) -> None:
        await request.app.state.limiters[name](request, response)
    return dependency


router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Health check",
)
async def health_check(request: Request):
    """Liveness probe: no toca la base de datos."""
    return HealthResponse(
        status="ok",
        version=__version__,
        uptime=round(time.monotonic() - request.app.state.started_at, 3),
    )


@router.get(
    "/api/v1/emisores",
    response_model=EmisoresPageResponse,
    responses=ERROR_RESPONSES,
    tags=["Emisores"],
    summary="Listado paginado de emisores",
    dependencies=[Depends(rate_limit("standard"))],
)
async def list_emisores(request: Request, page: int = 1, limit: int = DEFAULT_PAGE_SIZE):
    """
    Obtiene los emisores ordenados por razón social.

    Raises:
        InputValidationError: Si page < 1 o limit fuera de [1, 100]
    """
    if page < 1 or limit < 1 or limit > MAX_PAGE_SIZE:
        raise InputValidationError(
            "Parámetros de paginación inválidos. page debe ser >= 1 y limit debe estar entre 1 y 100."
        )

    database: DatabaseService = request.app.state.database
    emisores = await database.get_page(limit=limit, offset=(page - 1) * limit)
    total = await database.count()

    return EmisoresPageResponse(
        data=emisores,
        pagination=Pagination(
            page=page,
            limit=limit,
            total_items=total,
            total_pages=math.ceil(total / limit),
        ),
        last_update=request.app.state.coordinator.state.last_success_iso(),
    )


# Debe registrarse antes de /emisores/{rnc}
@router.get(
    "/api/v1/emisores/buscar",
    response_model=SearchResponse,
    responses=ERROR_RESPONSES,
    tags=["Emisores"],
    summary="Buscar emisores por razón social o nombre comercial",
    dependencies=[Depends(rate_limit("standard")), Depends(rate_limit("search"))],
)
async def search_emisores(request: Request, q: Optional[str] = None):
    if not q or len(q) < MIN_QUERY_LENGTH:
        raise InputValidationError("El término de búsqueda debe tener al menos 3 caracteres.")

    database: DatabaseService = request.app.state.database
    emisores = await database.search(q, max_results=MAX_SEARCH_RESULTS)
    return SearchResponse(
        data=emisores,
        count=len(emisores),
        query=q,
        last_update=request.app.state.coordinator.state.last_success_iso(),
    )


@router.get(
    "/api/v1/emisores/{rnc}",
    response_model=EmisorResponse,
    responses={**ERROR_RESPONSES, 404: {"model": ErrorResponse}},
    tags=["Emisores"],
    summary="Obtener un emisor por su RNC",
    dependencies=[Depends(rate_limit("standard"))],
)
async def get_emisor(request: Request, rnc: str):
    if len(rnc) < RNC_MIN_LENGTH or len(rnc) > RNC_MAX_LENGTH:
        raise InputValidationError("RNC inválido. Debe tener entre 9 y 11 caracteres.")

    database: DatabaseService = request.app.state.database
    emisor = await database.get_by_rnc(rnc)
    if emisor is None:
        return _error(status.HTTP_404_NOT_FOUND, "No se encontró un emisor con este RNC.")

    return EmisorResponse(
        data=emisor,
        last_update=request.app.state.coordinator.state.last_success_iso(),
    )


@router.get(
    "/api/v1/status",
    response_model=StatusResponse,
    responses=ERROR_RESPONSES,
    tags=["Estado"],
    summary="Estado de la última actualización",
    dependencies=[Depends(rate_limit("standard"))],
)
async def get_status(request: Request):
    database: DatabaseService = request.app.state.database
    coordinator: RefreshCoordinator = request.app.state.coordinator
    scheduler: Optional[RefreshScheduler] = request.app.state.scheduler

    next_run = scheduler.next_run_time() if scheduler else None
    return StatusResponse(
        status=ServiceStatus(
            total_records=await database.count(),
            last_update=coordinator.state.last_success_iso(),
            is_updating=coordinator.is_running,
            schedule=scheduler.schedule if scheduler else None,
            next_update=next_run.isoformat() if next_run else None,
        )
    )


@router.post(
    "/api/v1/actualizar",
    response_model=UpdateResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={**ERROR_RESPONSES, 409: {"model": ErrorResponse}},
    tags=["Actualización"],
    summary="Forzar actualización de datos",
    description="Inicia la descarga y recarga en segundo plano. 409 si ya hay una en curso.",
    dependencies=[Depends(rate_limit("standard")), Depends(rate_limit("update"))],
)
async def force_update(request: Request):
    coordinator: RefreshCoordinator = request.app.state.coordinator
    if coordinator.launch() is None:
        raise ConcurrentRefreshRejected(started=coordinator.state.last_success_iso())

    logger.info("🚀 Actualización forzada iniciada en segundo plano")
    return UpdateResponse(message="Actualización iniciada en segundo plano")


def _status_for(exc: DgiiError) -> int:
    if isinstance(exc, InputValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, ConcurrentRefreshRejected):
        return status.HTTP_409_CONFLICT
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DgiiError)
    async def dgii_error_handler(request: Request, exc: DgiiError):
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error(f"❌ Error en {request.url.path}: {exc}")
        return _error(status_code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = ", ".join(".".join(str(p) for p in err["loc"][1:]) for err in exc.errors())
        return _error(status.HTTP_400_BAD_REQUEST, f"Parámetros inválidos: {fields}")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail
        if exc.status_code == status.HTTP_404_NOT_FOUND and detail == "Not Found":
            detail = "Ruta no encontrada"
        return _error(exc.status_code, str(detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"❌ Excepción no controlada en {request.url.path}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Internal server error: {exc}")


def create_app(
    app_settings: Optional[Settings] = None,
    pipeline: Optional[Callable[[], Awaitable[int]]] = None,
) -> FastAPI:
    """
    Construye la aplicación con sus servicios.

    Args:
        app_settings: Configuración (default: singleton `settings`)
        pipeline: Corrutina de actualización (default: scraper real de DGII)
    """
    app_settings = app_settings or settings
    database = DatabaseService(app_settings.db_path)
    if pipeline is None:
        pipeline = build_orchestrator(app_settings, database).run_full_process
    coordinator = RefreshCoordinator(pipeline)
    scheduler = None
    if app_settings.scheduler_enabled:
        scheduler = RefreshScheduler(
            coordinator, app_settings.update_schedule, app_settings.scheduler_timezone
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await database.init()
        await database.ensure_schema()
        if scheduler is not None:
            scheduler.start()
        if app_settings.force_update_on_start:
            logger.info("Iniciando actualización inicial de datos...")
            coordinator.launch()
        logger.info(f"🚀 Servidor iniciado - API: /api/v1/emisores (puerto {app_settings.port})")
        yield
        if scheduler is not None:
            scheduler.shutdown()
        if coordinator.is_running:
            logger.warning("⚠️ Cerrando con una actualización en curso")
        await database.close()

    app = FastAPI(
        title="DGII Emisores API",
        description="Listado de emisores electrónicos de DGII, actualizado periódicamente desde el CSV publicado",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.database = database
    app.state.coordinator = coordinator
    app.state.scheduler = scheduler
    app.state.started_at = time.monotonic()
    app.state.limiters = {
        "standard": FixedWindowRateLimiter(
            app_settings.rate_limit_max,
            app_settings.rate_limit_window_seconds,
            "Demasiadas solicitudes, por favor intente de nuevo más tarde.",
        ),
        "search": FixedWindowRateLimiter(
            30, 15 * 60,
            "Demasiadas búsquedas. Por favor, espere unos minutos antes de intentar nuevamente.",
        ),
        "update": FixedWindowRateLimiter(
            5, 60 * 60,
            "Demasiadas solicitudes de actualización. Máximo 5 por hora.",
        ),
    }

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origin_list,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
        return response

    _register_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()
