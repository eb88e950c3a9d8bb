import asyncio

import pytest

from scraper.errors import RetryExhaustedError
from scraper.retry import retry_operation


def _flaky(failures: int, result="ok"):
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise RuntimeError(f"fallo {calls['count']}")
        return result

    return operation, calls


def test_returns_first_successful_result():
    operation, calls = _flaky(0, result=42)
    assert asyncio.run(retry_operation(operation, max_attempts=3, delay=0)) == 42
    assert calls["count"] == 1


def test_recovers_after_transient_failures():
    operation, calls = _flaky(2)
    assert asyncio.run(retry_operation(operation, max_attempts=3, delay=0)) == "ok"
    assert calls["count"] == 3


def test_exhaustion_reports_label_attempts_and_last_error():
    operation, calls = _flaky(10)

    with pytest.raises(RetryExhaustedError) as excinfo:
        asyncio.run(retry_operation(operation, max_attempts=3, delay=0, label="Descarga"))

    error = excinfo.value
    assert calls["count"] == 3
    assert error.attempts == 3
    assert error.label == "Descarga"
    assert "Descarga falló después de 3 intentos" in str(error)
    assert "fallo 3" in str(error)
    assert isinstance(error.__cause__, RuntimeError)


def test_single_attempt_does_not_retry():
    operation, calls = _flaky(1)
    with pytest.raises(RetryExhaustedError):
        asyncio.run(retry_operation(operation, max_attempts=1, delay=0))
    assert calls["count"] == 1


def test_rejects_zero_attempts():
    operation, calls = _flaky(0)
    with pytest.raises(ValueError):
        asyncio.run(retry_operation(operation, max_attempts=0, delay=0))
    assert calls["count"] == 0
