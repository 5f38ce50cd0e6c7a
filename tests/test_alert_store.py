from datetime import timedelta

from eyewitness.models.alert import AlertType
from eyewitness.services.alert_store import AlertStore

from conftest import NOW, make_conjunction_alert, make_weather_alert


def test_duplicate_ids_are_rejected():
    store = AlertStore()
    assert store.add(make_conjunction_alert()) is True
    assert store.add(make_conjunction_alert(miss_distance_km=9.0)) is False
    assert store.get("conj-sat-1-test").miss_distance_km == 3.2


def test_acknowledge_keeps_the_alert_unchanged():
    store = AlertStore()
    alert = make_conjunction_alert()
    store.add(alert)

    ack = store.acknowledge(alert.id, by="ops-1", when=NOW)

    assert ack.acknowledged is True
    assert ack.acknowledged_at == NOW
    assert ack.acknowledged_by == "ops-1"
    assert store.get(alert.id) == alert
    assert store.acknowledgement(alert.id) == ack


def test_first_acknowledgement_wins():
    store = AlertStore()
    store.add(make_conjunction_alert())

    first = store.acknowledge("conj-sat-1-test", by="ops-1", when=NOW)
    again = store.acknowledge("conj-sat-1-test", by="ops-2", when=NOW + timedelta(hours=1))

    assert again == first


def test_acknowledging_unknown_alert_returns_none():
    store = AlertStore()
    assert store.acknowledge("conj-nope") is None
    assert store.acknowledgement("conj-nope") is None


def test_list_filters_by_acknowledgement():
    store = AlertStore()
    store.add(make_conjunction_alert())
    store.add(make_weather_alert(kp=7.0))
    store.acknowledge("sw-sat-1-test", when=NOW)

    assert [a.id for a in store.list(acknowledged=True)] == ["sw-sat-1-test"]
    assert [a.id for a in store.list(acknowledged=False)] == ["conj-sat-1-test"]
    assert [a.id for a in store.list(alert_type=AlertType.CONJUNCTION)] == ["conj-sat-1-test"]
