"""Persistence backends (local JSON snapshot / remote SQLite rows)."""

from .base import PersistenceBackend
from .json_store import LocalStore
from .sqlite_store import MIGRATIONS, RemoteBackend, RemoteStore

__all__ = [
	"MIGRATIONS",
	"LocalStore",
	"PersistenceBackend",
	"RemoteBackend",
	"RemoteStore",
]
