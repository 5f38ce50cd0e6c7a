import asyncio
from datetime import date, datetime, timedelta, timezone

import httpx

from eyewitness.core.config import settings
from eyewitness.schemas.feeds import ConjunctionEventRecord, SpaceWeatherEventRecord, validate_records
from eyewitness.services import feeds

KP_PAYLOAD = [
    ["time_tag", "Kp", "a_running", "station_count"],
    ["2024-05-10 09:00:00.000", "5.33", "56", "8"],
    ["2024-05-10 12:00:00.000", "8.67", "300", "8"],
    ["2024-05-10 06:00:00.000", "4.00", "27", "8"],
]

SOCRATES_CSV = """TCA_TIME,MISS_DIST_KM,REL_VELOCITY,OBJECT1,OBJECT2,ALT_KM
2024-05-11T08:15:00Z,3.2,7.1,ISS,DEBRIS-7,412
2024-05-11T10:00:00Z,-1.0,7.1,ISS,DEBRIS-8,412
2024-05-11T11:00:00Z,8.4,12.9,STARLINK-1234,COSMOS 2251 DEB,550
"""

CME_PAYLOAD = [
    {
        "activityID": "2024-05-08T22:36:00-CME-001",
        "startTime": "2024-05-08T22:36Z",
        "link": "https://webtools.ccmc.gsfc.nasa.gov/DONKI/view/CME/30000/-1",
        "cmeAnalyses": [
            {"isMostAccurate": False, "enlilList": [
                {"estimatedShockArrivalTime": "2024-05-10T20:00Z", "estimatedDuration": 20.0},
            ]},
            {"isMostAccurate": True, "enlilList": [
                {"estimatedShockArrivalTime": None},
                {"estimatedShockArrivalTime": "2024-05-10T16:36Z", "estimatedDuration": None},
            ]},
        ],
    },
    {
        "activityID": "2024-05-09T01:00:00-CME-001",
        "startTime": "2024-05-09T01:00Z",
        "cmeAnalyses": [{"isMostAccurate": True, "enlilList": None}],
    },
]


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_validate_records_reports_rejections():
    rows = [
        {"tca": "2024-05-11T08:15:00Z", "miss_distance_km": 3.2, "relative_velocity_kms": 7.1,
         "object_a": "ISS", "object_b": "DEBRIS-7"},
        {"miss_distance_km": 3.2, "relative_velocity_kms": 7.1, "object_a": "ISS", "object_b": "X"},
    ]
    accepted, rejected = validate_records(rows, ConjunctionEventRecord)

    assert len(accepted) == 1
    assert accepted[0].tca == datetime(2024, 5, 11, 8, 15, tzinfo=timezone.utc)
    assert [r.index for r in rejected] == [1]
    assert any(e.startswith("tca") for e in rejected[0].errors)


def test_cme_window_end_before_start_is_rejected():
    _, rejected = validate_records(
        [{"cme_eta_start": "2024-05-10T12:00:00Z", "cme_eta_end": "2024-05-10T06:00:00Z"}],
        SpaceWeatherEventRecord,
    )
    assert len(rejected) == 1


def test_parse_kp_rows_skips_header_and_sorts():
    samples = feeds.parse_kp_rows(KP_PAYLOAD)

    assert [s.kp for s in samples] == [4.0, 5.33, 8.67]
    event = feeds.latest_kp_event(samples)
    assert event.kp == 8.67
    assert event.time == datetime(2024, 5, 10, 12, tzinfo=timezone.utc)


def test_parse_kp_rows_accepts_object_layout():
    samples = feeds.parse_kp_rows([{"time_tag": "2024-05-10T12:00:00", "Kp": 6.0}])
    assert samples[0].kp == 6.0


def test_parse_socrates_csv_with_aliases():
    events, rejected = validate_records(feeds.parse_socrates_csv(SOCRATES_CSV), ConjunctionEventRecord)

    assert [e.object_b for e in events] == ["DEBRIS-7", "COSMOS 2251 DEB"]
    assert events[0].altitude_km == 412.0
    assert events[0].source == "SOCRATES"
    assert [r.index for r in rejected] == [1]


def test_parse_donki_prefers_most_accurate_analysis():
    windows = feeds.parse_donki_cmes(CME_PAYLOAD, default_duration_hours=12.0)

    assert len(windows) == 1
    cme = windows[0]
    assert cme.type == "cme"
    assert cme.cme_eta_start == datetime(2024, 5, 10, 16, 36, tzinfo=timezone.utc)
    assert cme.cme_eta_end == cme.cme_eta_start + timedelta(hours=12)
    assert cme.source == "DONKI"


def test_fetch_kp_samples_over_http(monkeypatch):
    monkeypatch.setattr(settings, "SWPC_BASE", "https://swpc.test")
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json=KP_PAYLOAD)

    async def run():
        async with _client(handler) as client:
            return await feeds.fetch_kp_samples(client=client)

    samples = asyncio.run(run())
    assert len(samples) == 3
    assert seen == ["https://swpc.test/products/noaa-planetary-k-index.json"]


def test_fetch_failure_returns_empty(monkeypatch):
    monkeypatch.setattr(settings, "SOCRATES_URL", "https://socrates.test/conjunctions.csv")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    async def run():
        async with _client(handler) as client:
            return await feeds.fetch_socrates_events(client=client)

    assert asyncio.run(run()) == []


def test_donki_without_api_key_is_skipped(monkeypatch):
    monkeypatch.setattr(settings, "NASA_API_KEY", None)

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("DONKI should not be called without an API key")

    async def run():
        async with _client(handler) as client:
            return await feeds.fetch_donki_cmes(date(2024, 5, 9), date(2024, 5, 10), client=client)

    assert asyncio.run(run()) == []


def test_donki_request_carries_dates_and_key(monkeypatch):
    monkeypatch.setattr(settings, "NASA_API_KEY", "test-key")
    monkeypatch.setattr(settings, "DONKI_BASE", "https://donki.test")
    params = {}

    def handler(request: httpx.Request) -> httpx.Response:
        params.update(request.url.params)
        return httpx.Response(200, json=CME_PAYLOAD)

    async def run():
        async with _client(handler) as client:
            return await feeds.fetch_donki_cmes(date(2024, 5, 9), date(2024, 5, 10), client=client)

    windows = asyncio.run(run())
    assert len(windows) == 1
    assert params == {"startDate": "2024-05-09", "endDate": "2024-05-10", "api_key": "test-key"}


ISS_TLE = (
    "ISS (ZARYA)\n"
    "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927\n"
    "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537\n"
)

NOTIFICATIONS_PAYLOAD = [
    {
        "messageType": "Report",
        "messageID": "20240509-7D-Report-001",
        "messageURL": "https://kauai.ccmc.gsfc.nasa.gov/DONKI/view/Alert/30001/1",
        "messageIssueTime": "2024-05-09T12:00Z",
        "messageBody": "Weekly space weather summary",
    },
    {
        "messageType": "CME",
        "messageID": "20240510-AL-001",
        "messageIssueTime": "2024-05-10T06:30Z",
        "messageBody": "CME expected to arrive",
    },
    {"messageType": "GST"},
]


def test_parse_tle_text_reads_triplets_and_skips_garbage():
    text = ISS_TLE + "NOT A SAT\nhello\nworld\n"
    records = feeds.parse_tle_text(text)

    assert len(records) == 1
    assert records[0].norad_id == 25544
    assert records[0].name == "ISS (ZARYA)"
    assert records[0].line1.startswith("1 25544U")


def test_fetch_celestrak_tles_queries_group(monkeypatch):
    monkeypatch.setattr(settings, "CELESTRAK_BASE", "https://celestrak.test")
    params = {}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/NORAD/elements/gp.php"
        params.update(request.url.params)
        return httpx.Response(200, text=ISS_TLE)

    async def run():
        async with _client(handler) as client:
            return await feeds.fetch_celestrak_tles("stations", client=client)

    records = asyncio.run(run())
    assert [r.norad_id for r in records] == [25544]
    assert params == {"GROUP": "stations", "FORMAT": "tle"}


def test_parse_donki_notifications_newest_first():
    notifications = feeds.parse_donki_notifications(NOTIFICATIONS_PAYLOAD)

    assert [n.message_id for n in notifications] == ["20240510-AL-001", "20240509-7D-Report-001"]
    assert notifications[0].issue_time == datetime(2024, 5, 10, 6, 30, tzinfo=timezone.utc)
    assert notifications[0].url is None


def test_donki_notifications_request(monkeypatch):
    monkeypatch.setattr(settings, "NASA_API_KEY", "test-key")
    monkeypatch.setattr(settings, "DONKI_BASE", "https://donki.test")
    params = {}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/notifications"
        params.update(request.url.params)
        return httpx.Response(200, json=NOTIFICATIONS_PAYLOAD)

    async def run():
        async with _client(handler) as client:
            return await feeds.fetch_donki_notifications(date(2024, 5, 3), date(2024, 5, 10), client=client)

    assert len(asyncio.run(run())) == 2
    assert params["type"] == "all"
    assert params["startDate"] == "2024-05-03"
