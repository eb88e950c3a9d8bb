"""
Rate limiting en memoria por ventana fija, como dependencia de FastAPI.

El estado vive en el proceso: suficiente para una sola instancia del servicio.
Los clientes se identifican por la dirección del socket. Detrás de un proxy,
uvicorn la reescribe desde X-Forwarded-For solo para los proxies listados en
`FORWARDED_ALLOW_IPS`.
"""

import time
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request, Response, status


class FixedWindowRateLimiter:
    """Cuenta solicitudes por cliente dentro de ventanas de duración fija."""

    def __init__(self, max_requests: int, window_seconds: float, message: str,
                 clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        """Clientes con ventana registrada."""
        return len(self._windows)

    def hit(self, key: str) -> Tuple[bool, int, float]:
        """
        Registra una solicitud.

        Returns:
            (permitida, solicitudes restantes, segundos hasta el reinicio de la ventana)
        """
        now = self._clock()
        self._sweep(now)

        window_start, count = self._windows.get(key, (now, 0))
        if now - window_start >= self.window_seconds:
            window_start, count = now, 0

        count += 1
        self._windows[key] = (window_start, count)
        reset_in = max(self.window_seconds - (now - window_start), 0)
        return count <= self.max_requests, max(self.max_requests - count, 0), reset_in

    def reset(self) -> None:
        self._windows.clear()

    def _sweep(self, now: float) -> None:
        """Descarta ventanas vencidas, como máximo una vez por ventana."""
        if now - self._last_sweep < self.window_seconds:
            return
        self._windows = {
            key: entry for key, entry in self._windows.items()
            if now - entry[0] < self.window_seconds
        }
        self._last_sweep = now

    async def __call__(self, request: Request, response: Response) -> None:
        key = _client_key(request)
        allowed, remaining, reset_in = self.hit(key)
        headers = {
            "RateLimit-Limit": str(self.max_requests),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(int(reset_in)),
        }
        if not allowed:
            headers["Retry-After"] = str(max(int(reset_in), 1))
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=self.message,
                headers=headers,
            )
        response.headers.update(headers)


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "anonymous"
