"""
Ejecutor genérico de reintentos para operaciones asíncronas.

No conoce nada de descargas: cualquier corrutina puede envolverse.
"""

import logging
from typing import Awaitable, Callable, TypeVar

from tenacity import AsyncRetrying, RetryError, RetryCallState, stop_after_attempt, wait_fixed

from scraper.errors import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _log_failed_attempt(label: str, max_attempts: int) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"⚠️ Error en {label} (intento {retry_state.attempt_number}/{max_attempts}): {error}"
        )
        logger.info(f"🔄 Reintentando en {delay:.0f} segundos...")
    return before_sleep


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    delay: float = 1.0,
    label: str = "Operación",
) -> T:
    """
    Ejecuta `operation` hasta `max_attempts` veces con espera fija entre intentos.

    Args:
        operation: Función sin argumentos que devuelve una corrutina nueva en cada intento
        max_attempts: Número máximo de intentos (>= 1)
        delay: Segundos de espera entre intentos
        label: Nombre de la operación para logs y mensaje de error

    Returns:
        El resultado del primer intento exitoso

    Raises:
        RetryExhaustedError: Si todos los intentos fallan (encadenado al último error)
    """
    if max_attempts < 1:
        raise ValueError("max_attempts debe ser >= 1")

    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_fixed(delay),
            before_sleep=_log_failed_attempt(label, max_attempts),
        ):
            with attempt:
                return await operation()
    except RetryError as e:
        last_error = e.last_attempt.exception()
        logger.error(f"❌ {label} falló en el intento {max_attempts}/{max_attempts}: {last_error}")
        raise RetryExhaustedError(label, max_attempts, last_error) from last_error
