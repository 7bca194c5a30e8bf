"""In-process notification bus for ``prefset`` events."""
from __future__ import annotations

import logging
from typing import Callable, List

from prefengine.common.models import PrefSetEvent

logger = logging.getLogger(__name__)

Subscriber = Callable[[PrefSetEvent], None]


class NotificationBus:
    """Fire-and-forget publisher; a failing subscriber never reaches the publisher."""

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def publish(self, event: PrefSetEvent) -> None:
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:  # noqa: BLE001 - delivery is best effort
                logger.exception(
                    "subscriber %r failed for %s %s:%s", subscriber, event.topic, event.namespace, event.name
                )
