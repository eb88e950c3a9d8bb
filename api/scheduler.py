"""Programación periódica de la actualización con expresiones cron."""

import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from api.tasks import RefreshCoordinator

logger = logging.getLogger(__name__)

JOB_ID = "dgii_refresh"


class RefreshScheduler:
    """Dispara `request_refresh()` según una expresión cron de 5 campos."""

    def __init__(self, coordinator: RefreshCoordinator, schedule: str, timezone: str = "UTC"):
        self.coordinator = coordinator
        self.schedule = schedule
        self.trigger = CronTrigger.from_crontab(schedule, timezone=timezone)
        self._scheduler: Optional[AsyncIOScheduler] = None

    def start(self) -> None:
        """Debe llamarse con el event loop corriendo."""
        if self._scheduler is not None:
            return
        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            self._run_scheduled,
            trigger=self.trigger,
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=300,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(f"⏱️ Actualizaciones programadas: {self.schedule}")

    def shutdown(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("⏱️ Programador detenido")

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def next_run_time(self) -> Optional[datetime]:
        if self._scheduler is None:
            return None
        job = self._scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None

    async def _run_scheduled(self) -> None:
        logger.info("⏰ Iniciando actualización programada...")
        try:
            await self.coordinator.request_refresh()
        except Exception as e:
            logger.error(f"❌ Error en la actualización programada: {e}")
