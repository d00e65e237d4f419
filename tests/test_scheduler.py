from datetime import datetime, timedelta

import pytest
import pytz

from prayer_times import PrayerInfo
from scheduler import PrayerScheduler, next_refresh_time

YANGON_TZ = pytz.timezone("Asia/Yangon")


@pytest.fixture
def now():
    return YANGON_TZ.localize(datetime(2024, 3, 20, 13, 0))


def _prayers(now):
    return [
        PrayerInfo(name="Fajr", time=now - timedelta(hours=8)),
        PrayerInfo(name="Dhuhr", time=now - timedelta(minutes=45)),
        PrayerInfo(name="Asr", time=now + timedelta(hours=2, minutes=35)),
        PrayerInfo(name="Maghrib", time=now + timedelta(hours=5, minutes=18)),
        PrayerInfo(name="Isha", time=None),
    ]


def test_schedules_only_upcoming_reachable_prayers(now):
    scheduler = PrayerScheduler(YANGON_TZ)
    fired = []

    count = scheduler.schedule_prayers(_prayers(now), fired.append, now=now)

    assert count == 2
    assert len(scheduler.prayer_job_ids) == 2
    assert len(scheduler._scheduler.get_jobs()) == 2
    assert fired == []


def test_rescheduling_replaces_previous_jobs(now):
    scheduler = PrayerScheduler(YANGON_TZ)
    scheduler.schedule_prayers(_prayers(now), lambda name: None, now=now)
    first_ids = scheduler.prayer_job_ids

    scheduler.schedule_prayers(_prayers(now), lambda name: None, now=now)

    assert len(scheduler._scheduler.get_jobs()) == 2
    assert not set(first_ids) & set(scheduler.prayer_job_ids)


def test_refresh_job_is_replaced(now):
    scheduler = PrayerScheduler(YANGON_TZ)
    scheduler.schedule_refresh(next_refresh_time(now), lambda: None)
    scheduler.schedule_refresh(next_refresh_time(now), lambda: None)
    assert len(scheduler._scheduler.get_jobs()) == 1


def test_scheduler_reports_zone_name():
    assert PrayerScheduler(YANGON_TZ).timezone == "Asia/Yangon"


def test_next_refresh_time_is_after_next_midnight(now):
    refresh = next_refresh_time(now)
    assert refresh == YANGON_TZ.localize(datetime(2024, 3, 21, 0, 5))
    assert refresh.utcoffset() == timedelta(hours=6, minutes=30)
