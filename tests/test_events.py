from __future__ import annotations

import logging

from prefengine.common.models import PrefSetEvent
from prefengine.core import NotificationBus


def _event(**overrides) -> PrefSetEvent:
    fields = {"target": "c1", "namespace": "server", "name": "volume", "new_value": 40}
    fields.update(overrides)
    return PrefSetEvent(**fields)


def test_event_dict_uses_wire_keys() -> None:
    assert _event().to_dict() == {
        "target": "c1",
        "topic": "prefset",
        "namespace": "server",
        "name": "volume",
        "newValue": 40,
    }
    assert _event(target=None).to_dict()["target"] is None


def test_unsubscribe_stops_delivery() -> None:
    bus = NotificationBus()
    seen = []
    bus.subscribe(seen.append)
    bus.publish(_event())
    bus.unsubscribe(seen.append)
    bus.unsubscribe(seen.append)
    bus.publish(_event(name="language"))
    assert [event.name for event in seen] == ["volume"]


def test_failing_subscriber_is_logged_and_others_still_run(caplog) -> None:
    bus = NotificationBus()
    seen = []

    def broken(event):
        raise RuntimeError("subscriber down")

    bus.subscribe(broken)
    bus.subscribe(seen.append)
    with caplog.at_level(logging.ERROR, logger="prefengine.core.events"):
        bus.publish(_event())
    assert len(seen) == 1
    assert "subscriber" in caplog.text
