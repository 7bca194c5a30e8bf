from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from prefengine.common.models import NamespaceSnapshot, PrefSetEvent
from prefengine.core import NamespaceRoot, NotificationBus
from prefengine.storage import LocalStore, PersistenceBackend, RemoteBackend, RemoteStore


class RecordingBackend(PersistenceBackend):
    """In-memory local-mode backend that counts persist calls."""

    remote = False

    def __init__(self) -> None:
        self.snapshot = NamespaceSnapshot()
        self.persist_calls = 0

    def load(self, namespace: str) -> NamespaceSnapshot:
        return NamespaceSnapshot(prefs=dict(self.snapshot.prefs), clients=dict(self.snapshot.clients))

    def persist(self, namespace: str, snapshot: NamespaceSnapshot) -> None:
        self.persist_calls += 1
        self.snapshot = snapshot


class CountingRemoteBackend(RemoteBackend):
    def __init__(self, store: RemoteStore) -> None:
        super().__init__(store)
        self.persist_calls = 0

    def persist(self, namespace: str, snapshot: NamespaceSnapshot) -> None:
        self.persist_calls += 1
        super().persist(namespace, snapshot)


@pytest.fixture
def events() -> List[PrefSetEvent]:
    return []


@pytest.fixture
def bus(events: List[PrefSetEvent]) -> NotificationBus:
    notification_bus = NotificationBus()
    notification_bus.subscribe(events.append)
    return notification_bus


@pytest.fixture
def local_backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def remote_store(tmp_path: Path) -> RemoteStore:
    return RemoteStore(tmp_path / "remote.db")


@pytest.fixture
def remote_backend(remote_store: RemoteStore) -> CountingRemoteBackend:
    return CountingRemoteBackend(remote_store)


@pytest.fixture
def server_root(local_backend: RecordingBackend, bus: NotificationBus) -> NamespaceRoot:
    return NamespaceRoot("server", local_backend, bus=bus)


@pytest.fixture
def file_root(tmp_path: Path, bus: NotificationBus) -> NamespaceRoot:
    return NamespaceRoot("server", LocalStore(tmp_path / "prefs"), bus=bus)
