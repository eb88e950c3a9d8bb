"""Taxonomía de errores del pipeline de extracción y de la API."""

from typing import Optional


class DgiiError(Exception):
    """Error base del sistema."""


class NavigationTimeoutError(DgiiError):
    """La página objetivo no terminó de cargar dentro del timeout."""

    def __init__(self, url: str, timeout_ms: int):
        self.url = url
        self.timeout_ms = timeout_ms
        super().__init__(f"Timeout navegando a {url} después de {timeout_ms / 1000:.0f} segundos")


class ElementNotFoundError(DgiiError):
    """No se encontró el disparador de descarga tras agotar los reintentos."""

    def __init__(self, keyword: str, attempts: int):
        self.keyword = keyword
        self.attempts = attempts
        super().__init__(
            f"No se pudo encontrar el botón {keyword} en la página ({attempts} intentos)"
        )


class DownloadTimeoutError(DgiiError):
    """No apareció ningún archivo candidato antes del timeout."""

    def __init__(self, elapsed_seconds: float):
        self.elapsed_seconds = elapsed_seconds
        super().__init__(
            f"Timeout esperando la descarga después de {elapsed_seconds:.0f} segundos"
        )


class EmptyOrCorruptFileError(DgiiError):
    """El CSV descargado está vacío o solo contiene el encabezado."""


class StoreError(DgiiError):
    """Fallo de esquema o de E/S en la base de datos."""


class InputValidationError(DgiiError):
    """Parámetros inválidos recibidos por la API."""


class ConcurrentRefreshRejected(DgiiError):
    """Ya hay una actualización en progreso."""

    def __init__(self, started: Optional[str] = None):
        self.started = started
        super().__init__("Ya hay una actualización en progreso.")


class RetryExhaustedError(DgiiError):
    """Una operación falló en todos sus intentos."""

    def __init__(self, label: str, attempts: int, last_error: Optional[BaseException]):
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
        last_message = str(last_error) if last_error else "desconocido"
        super().__init__(
            f"{label} falló después de {attempts} intentos. Último error: {last_message}"
        )
