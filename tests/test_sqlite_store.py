from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from prefengine.common.errors import BackendError, ErrorCode
from prefengine.common.models import NamespaceSnapshot, RemoteRow
from prefengine.storage import MIGRATIONS, RemoteBackend, RemoteStore


def test_migrations_are_recorded(tmp_path: Path) -> None:
    db_path = tmp_path / "remote.db"
    RemoteStore(db_path)
    RemoteStore(db_path)

    with sqlite3.connect(db_path) as conn:
        versions = [row[0] for row in conn.execute("SELECT version FROM schema_migrations ORDER BY version")]
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert versions == [version for version, _ in MIGRATIONS]
    assert {"clients", "client_prefs", "account_prefs", "namespace_snapshots"} <= tables


def test_write_sequence_replaces_previous_rows(remote_store: RemoteStore) -> None:
    remote_store.register_client("c1", "acc")
    remote_store.write_sequence("c1", "favorites", ["a", "b", "c"])
    remote_store.write_sequence("c1", "favorites", ["d"])
    assert remote_store.read("c1", "favorites") == [RemoteRow(index=0, value="d")]


def test_scalars_are_stored_as_text(remote_store: RemoteStore) -> None:
    remote_store.register_client("c1", None)
    remote_store.write_scalar("c1", "volume", 40)
    remote_store.write_scalar("c1", "mute", True)
    remote_store.write_scalar("c1", "title", None)
    assert remote_store.read("c1", "volume") == [RemoteRow(0, "40")]
    assert remote_store.read("c1", "mute") == [RemoteRow(0, "1")]
    assert remote_store.read("c1", "title") == [RemoteRow(0, None)]


def test_writing_for_unknown_client_registers_it(remote_store: RemoteStore) -> None:
    remote_store.write_scalar("fresh", "volume", 10)
    assert remote_store.read("fresh", "volume") == [RemoteRow(0, "10")]
    assert remote_store.account_for("fresh") is None


def test_account_rows_used_only_when_client_has_none(remote_store: RemoteStore) -> None:
    remote_store.register_client("c1", "acc")
    remote_store.write_account_value("acc", "language", "DE")
    assert remote_store.read("c1", "language") == [RemoteRow(0, "DE")]

    remote_store.write_scalar("c1", "language", "EN")
    assert remote_store.read("c1", "language") == [RemoteRow(0, "EN")]

    remote_store.clear_rows("c1", "language")
    assert remote_store.read("c1", "language") == [RemoteRow(0, "DE")]


def test_register_client_rebinds_account(remote_store: RemoteStore) -> None:
    remote_store.register_client("c1", "acc-1")
    remote_store.register_client("c1", "acc-2")
    assert remote_store.account_for("c1") == "acc-2"


def test_snapshot_round_trip(remote_store: RemoteStore) -> None:
    assert remote_store.load_snapshot("server") == {}
    remote_store.save_snapshot("server", {"language": "EN", "repos": ["a"]})
    remote_store.save_snapshot("server", {"language": "DE"})
    assert remote_store.load_snapshot("server") == {"language": "DE"}


def test_backend_dispatches_by_shape(remote_store: RemoteStore) -> None:
    backend = RemoteBackend(remote_store)
    backend.write_remote("c1", "repos", ["a", "b"])
    backend.write_remote("c1", "plugin", {"x": 1})
    backend.write_remote("c1", "volume", 5)

    assert [row.value for row in backend.read_remote("c1", "repos")] == ["a", "b"]
    assert backend.read_remote("c1", "plugin") == [RemoteRow(0, 'json:{"x": 1}')]
    assert backend.read_remote("c1", "volume") == [RemoteRow(0, "5")]

    backend.clear_remote("c1", "volume")
    assert backend.read_remote("c1", "volume") == []


def test_backend_persist_skips_client_mappings(remote_store: RemoteStore) -> None:
    backend = RemoteBackend(remote_store)
    backend.persist("server", NamespaceSnapshot(prefs={"language": "EN"}, clients={"c1": {"volume": 10}}))
    assert backend.load("server") == NamespaceSnapshot(prefs={"language": "EN"})


def test_unopenable_database_raises_persistence_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    with pytest.raises(BackendError) as exc:
        RemoteStore(blocker / "remote.db")
    assert exc.value.code == ErrorCode.PERSISTENCE_ERROR
