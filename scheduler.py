"""Scheduling of prayer notifications and the daily recomputation."""
from __future__ import annotations

import logging
from contextlib import suppress
from datetime import datetime, time as time_module, timedelta, tzinfo as TzInfo
from typing import Callable, Iterable, List, Optional, Union

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from prayer_times import PrayerInfo

LOGGER = logging.getLogger(__name__)

# Recompute shortly after local midnight so the new day's times are in place.
REFRESH_AFTER_MIDNIGHT = time_module(hour=0, minute=5)


class PrayerScheduler:
    """Wrap APScheduler to fire one-off jobs at each prayer time."""

    def __init__(self, timezone: Union[str, TzInfo]) -> None:
        self._scheduler = BackgroundScheduler(timezone=timezone)
        self._jobs: List[str] = []
        self._refresh_job_id: Optional[str] = None

    def start(self) -> None:
        if not self._scheduler.running:
            LOGGER.info("Starting background scheduler")
            self._scheduler.start()

    def shutdown(self) -> None:
        if self._scheduler.running:
            LOGGER.info("Stopping background scheduler")
            self._scheduler.shutdown(wait=False)

    @property
    def timezone(self) -> str:
        tzinfo = self._scheduler.timezone
        return str(getattr(tzinfo, "zone", None) or tzinfo)

    @property
    def prayer_job_ids(self) -> List[str]:
        return list(self._jobs)

    def schedule_prayers(
        self,
        prayers: Iterable[PrayerInfo],
        callback: Callable[[str], None],
        now: Optional[datetime] = None,
    ) -> int:
        """Replace pending prayer jobs with one per upcoming, reachable prayer."""
        self._clear_prayer_jobs()

        now = now or datetime.now(self._scheduler.timezone)
        for info in prayers:
            if info.time is None:
                LOGGER.info("No %s time today at this location; nothing scheduled", info.name)
                continue
            if info.time <= now:
                continue
            job = self._scheduler.add_job(callback, trigger=DateTrigger(run_date=info.time), args=[info.name])
            LOGGER.debug("Scheduled %s job %s at %s", info.name, job.id, info.time)
            self._jobs.append(job.id)
        return len(self._jobs)

    def schedule_refresh(self, next_run: datetime, refresh_callback: Callable[[], None]) -> None:
        """Schedule a single refresh job, replacing any existing one."""
        if self._refresh_job_id:
            LOGGER.debug("Removing existing refresh job %s", self._refresh_job_id)
            with suppress(JobLookupError):
                self._scheduler.remove_job(self._refresh_job_id)
            self._refresh_job_id = None

        job = self._scheduler.add_job(refresh_callback, trigger=DateTrigger(run_date=next_run))
        LOGGER.debug("Scheduled refresh job %s at %s", job.id, next_run)
        self._refresh_job_id = job.id

    def _clear_prayer_jobs(self) -> None:
        for job_id in self._jobs:
            with suppress(JobLookupError):
                self._scheduler.remove_job(job_id)
        self._jobs.clear()


def next_refresh_time(reference: datetime) -> datetime:
    """Return the refresh instant on the day after *reference*, in its zone."""
    tzinfo = reference.tzinfo
    refresh_naive = datetime.combine(reference.date() + timedelta(days=1), REFRESH_AFTER_MIDNIGHT)
    if hasattr(tzinfo, "localize"):
        return tzinfo.localize(refresh_naive)
    return refresh_naive.replace(tzinfo=tzinfo)
