import json
from datetime import date, datetime

import pytest
import pytz

import main
from calc_methods import CalcMethod
from prayer_times import CalculationSettings, LocationInfo, PrayerTimesService

YANGON_ARGS = ["--lat", "16.8409", "--lng", "96.1735", "--tz", "6.5", "--date", "2024-03-20"]


@pytest.fixture
def no_config(tmp_path):
    return ["--config", str(tmp_path / "missing.json")]


def test_json_output_for_coordinates(capsys, no_config):
    assert main.main(YANGON_ARGS + ["--method", "Karachi", "--json"] + no_config) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["date"] == "2024-03-20"
    assert payload["utc_offset"] == 6.5
    times = payload["times"]
    assert set(times) == {"fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha", "minutes", "day_offsets"}
    assert times["dhuhr"].endswith("PM")
    assert times["minutes"]["fajr"] < times["minutes"]["isha"]


def test_text_output_for_bundled_city(capsys, no_config):
    assert main.main(["--city", "yangon", "--date", "2024-03-20"] + no_config) == 0

    out = capsys.readouterr().out
    assert out.startswith("Yangon, Myanmar | 2024-03-20 (UTC+6.5)")
    for name in ("Fajr", "Sunrise", "Dhuhr", "Asr", "Maghrib", "Isha"):
        assert name in out


def test_location_and_settings_from_config(capsys, tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "location": {"city": "Mandalay", "country": "MM", "latitude": 21.9588, "longitude": 96.0891, "utc_offset": 6.5},
                "calculation": {"method": "UmmAlQura", "umm_al_qura_isha_minutes": 120},
            }
        ),
        encoding="utf-8",
    )
    assert main.main(["--config", str(config_path), "--date", "2024-03-20", "--json"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["location"]["city"] == "Mandalay"
    minutes = payload["times"]["minutes"]
    assert minutes["isha"] - minutes["maghrib"] == pytest.approx(120, abs=1)


def test_list_methods(capsys):
    assert main.main(["--list-methods"]) == 0
    out = capsys.readouterr().out
    assert "UmmAlQura" in out
    assert "Custom" in out


def test_list_cities(capsys):
    assert main.main(["--list-cities"]) == 0
    assert "yangon" in capsys.readouterr().out


def test_missing_location_is_an_argument_error(no_config):
    with pytest.raises(SystemExit) as excinfo:
        main.main(["--date", "2024-03-20"] + no_config)
    assert excinfo.value.code == 2


@pytest.mark.parametrize(
    "extra",
    [["--method", "ISNA"], ["--asr", "3"], ["--date", "20-03-2024"], ["--city", "atlantis"]],
)
def test_invalid_arguments(extra, no_config):
    args = ["--city", "yangon"] + extra if extra[0] != "--city" else extra
    with pytest.raises(SystemExit) as excinfo:
        main.main(args + no_config)
    assert excinfo.value.code == 2


def test_lat_requires_lng(no_config):
    with pytest.raises(SystemExit):
        main.main(["--lat", "16.8"] + no_config)


def _pending_runs(watcher):
    return [(job.args, job.trigger.run_date) for job in watcher.scheduler._scheduler.get_jobs()]


def test_watcher_refresh_uses_the_location_date():
    yangon = LocationInfo(city="Yangon", country="Myanmar", latitude=16.8409, longitude=96.1735, timezone="Asia/Yangon")
    watcher = main.PrayerWatcher(PrayerTimesService(CalculationSettings(method=CalcMethod.KARACHI)), yangon)

    # Still 2024-03-20 in UTC but already 00:05 on 2024-03-21 in Yangon.
    now = pytz.utc.localize(datetime(2024, 3, 20, 17, 35))
    assert watcher.refresh(now) == 5

    runs = _pending_runs(watcher)
    prayer_dates = {run_date.date() for args, run_date in runs if args}
    assert prayer_dates == {date(2024, 3, 21)}
    refreshes = [run_date for args, run_date in runs if not args]
    assert len(refreshes) == 1
    assert (refreshes[0].date(), refreshes[0].hour, refreshes[0].minute) == (date(2024, 3, 22), 0, 5)


def test_watcher_refresh_keeps_isha_carried_past_midnight():
    paris = LocationInfo(city="Paris", country="France", latitude=48.8566, longitude=2.3522, timezone="Europe/Paris")
    watcher = main.PrayerWatcher(PrayerTimesService(), paris)

    watcher.refresh(pytz.timezone("Europe/Paris").localize(datetime(2024, 6, 22, 0, 5)))

    isha_dates = sorted(run_date.date() for args, run_date in _pending_runs(watcher) if tuple(args) == ("Isha",))
    assert isha_dates == [date(2024, 6, 22), date(2024, 6, 23)]
