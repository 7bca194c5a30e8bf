"""Persistence strategy interface shared by the local and remote backends."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List

from prefengine.common.errors import BackendError, ErrorCode
from prefengine.common.models import NamespaceSnapshot, RemoteRow


class PersistenceBackend(ABC):
    """Strategy chosen once per namespace; business logic never branches on deployment mode."""

    remote: bool = False

    @abstractmethod
    def load(self, namespace: str) -> NamespaceSnapshot:
        """Return the stored snapshot for ``namespace`` (empty when unknown)."""

    @abstractmethod
    def persist(self, namespace: str, snapshot: NamespaceSnapshot) -> None:
        """Durably record the namespace snapshot. Failures propagate."""

    def read_remote(self, client_id: str, key: str) -> List[RemoteRow]:
        raise BackendError(ErrorCode.UNSUPPORTED, f"{type(self).__name__} has no remote rows")

    def write_remote(self, client_id: str, key: str, value: Any) -> None:
        raise BackendError(ErrorCode.UNSUPPORTED, f"{type(self).__name__} has no remote rows")

    def clear_remote(self, client_id: str, key: str) -> None:
        raise BackendError(ErrorCode.UNSUPPORTED, f"{type(self).__name__} has no remote rows")
