from datetime import datetime, timezone

import pytest

from eyewitness import worker
from eyewitness.schemas.feeds import ConjunctionEventRecord, KpSample, TleRecord


async def _kp_samples():
    return [KpSample(time=datetime(2024, 5, 10, 12, tzinfo=timezone.utc), kp=7.33)]


async def _no_events(*args, **kwargs):
    return []


def test_kp_poll_posts_latest_reading(monkeypatch):
    posted = []

    def fake_post(path, records):
        posted.append((path, records))
        return {"accepted": 1, "alerts": 2, "decisions": 2}

    monkeypatch.setattr(worker, "fetch_kp_samples", _kp_samples)
    monkeypatch.setattr(worker, "post_records", fake_post)

    result = worker.poll_space_weather_task()

    assert result["alerts"] == 2
    path, records = posted[0]
    assert path == "space-weather"
    assert records[0].kp == 7.33


def test_empty_feed_posts_nothing(monkeypatch):
    def fake_post(path, records):
        raise AssertionError("nothing to post")

    monkeypatch.setattr(worker, "fetch_socrates_events", _no_events)
    monkeypatch.setattr(worker, "post_records", fake_post)

    assert worker.poll_conjunctions_task() == {"accepted": 0}


def test_post_failure_is_raised(monkeypatch):
    def failing_post(path, records):
        raise ConnectionError("api down")

    monkeypatch.setattr(worker, "fetch_kp_samples", _kp_samples)
    monkeypatch.setattr(worker, "post_records", failing_post)

    with pytest.raises(ConnectionError):
        worker.poll_space_weather_task()


def test_cdm_poll_posts_to_conjunction_ingest(monkeypatch):
    posted = []

    async def cdm_events():
        return [ConjunctionEventRecord(
            tca=datetime(2024, 5, 11, 8, tzinfo=timezone.utc),
            miss_distance_km=0.4,
            relative_velocity_kms=9.8,
            object_a="ISS",
            object_b="DEBRIS-9",
            pc=1e-3,
            sigma_radial_km=0.1,
            sigma_tangential_km=10.0,
            sigma_normal_km=8.0,
            source="Space-Track CDM",
        )]

    def fake_post(path, records):
        posted.append((path, records))
        return {"accepted": 1, "alerts": 1, "decisions": 1}

    monkeypatch.setattr(worker, "fetch_cdm_events", cdm_events)
    monkeypatch.setattr(worker, "post_records", fake_post)

    assert worker.poll_cdm_task()["decisions"] == 1
    path, records = posted[0]
    assert path == "conjunctions"
    assert records[0].sigma_tangential_km == 10.0


def test_tle_refresh_posts_element_sets(monkeypatch):
    posted = []

    async def tles():
        return [TleRecord(
            norad_id=25544,
            name="ISS (ZARYA)",
            line1="1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927",
            line2="2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537",
        )]

    def fake_post(path, records):
        posted.append(path)
        return {"accepted": 1, "updated": 1, "refreshed": 1}

    monkeypatch.setattr(worker, "fetch_celestrak_tles", tles)
    monkeypatch.setattr(worker, "post_records", fake_post)

    assert worker.poll_tles_task()["updated"] == 1
    assert posted == ["tles"]
