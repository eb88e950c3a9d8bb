"""
Configuración del servicio usando Pydantic Settings.
Lee variables de entorno o .env file.
"""

import logging
from typing import List

from apscheduler.triggers.cron import CronTrigger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from config.dgii_selectors import DGII_URL


class Settings(BaseSettings):
    """Settings del servicio de emisores DGII."""

    log_level: str = "INFO"

    # Almacenamiento
    db_path: str = "./dgii_data.db"
    download_path: str = "./downloads"
    keep_downloads: bool = False
    csv_encoding: str = "utf-8-sig"

    # Scraping
    dgii_url: str = DGII_URL
    browser_headless: bool = True
    navigation_timeout_ms: int = Field(30000, gt=0)
    download_timeout_seconds: float = Field(60.0, gt=0)
    max_retries: int = Field(3, ge=1)
    retry_delay_seconds: float = Field(5.0, ge=0)
    locator_retry_delay_seconds: float = Field(2.0, ge=0)
    download_poll_interval_seconds: float = Field(2.0, gt=0)
    download_initial_wait_seconds: float = Field(3.0, ge=0)
    download_min_size_bytes: int = Field(100, ge=0)
    download_recent_window_seconds: float = Field(30.0, gt=0)

    # Programación
    update_schedule: str = "0 3 * * *"  # todos los días a las 3:00 AM
    scheduler_enabled: bool = True
    scheduler_timezone: str = "America/Santo_Domingo"
    force_update_on_start: bool = False

    # Servidor HTTP
    host: str = "0.0.0.0"
    port: int = Field(3000, gt=0, lt=65536)
    cors_origins: str = "*"  # separados por coma
    forwarded_allow_ips: str = "127.0.0.1"  # proxies de confianza para X-Forwarded-For
    rate_limit_window_minutes: int = Field(15, gt=0)
    rate_limit_max: int = Field(100, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("update_schedule")
    @classmethod
    def validate_schedule(cls, value: str) -> str:
        value = value.strip()
        try:
            CronTrigger.from_crontab(value, timezone="UTC")
        except ValueError as e:
            raise ValueError(f"Formato de programación inválido: {value} ({e})") from e
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Nivel de log desconocido: {value}")
        return level

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def rate_limit_window_seconds(self) -> int:
        return self.rate_limit_window_minutes * 60


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# Singleton
settings = Settings()
