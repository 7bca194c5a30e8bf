"""Process-lifetime registry of namespaces with a backend chosen once from config."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from prefengine.common.config import load_engine_config
from prefengine.common.errors import BackendError, ErrorCode
from prefengine.common.models import EngineSettings
from prefengine.storage import LocalStore, PersistenceBackend, RemoteBackend, RemoteStore

from .events import NotificationBus
from .namespace import NamespaceRoot
from .scope import PreferenceScope

logger = logging.getLogger(__name__)


def build_backend(settings: EngineSettings) -> PersistenceBackend:
    if settings.is_remote:
        return RemoteBackend(RemoteStore(Path(settings.remote_db)))
    return LocalStore(Path(settings.prefs_dir))


class PreferenceService:
    """Hands out global and client scopes; namespaces are created lazily on first access."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        *,
        backend: Optional[PersistenceBackend] = None,
        bus: Optional[NotificationBus] = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.backend = backend or build_backend(self.settings)
        self.bus = bus or NotificationBus()
        self._namespaces: Dict[str, NamespaceRoot] = {}

    @classmethod
    def from_config(
        cls,
        config_path: Optional[Path] = None,
        *,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "PreferenceService":
        return cls(load_engine_config(config_path, overrides=overrides))

    @property
    def remote_store(self) -> RemoteStore:
        if not isinstance(self.backend, RemoteBackend):
            raise BackendError(ErrorCode.UNSUPPORTED, "remote store is only available in remote mode")
        return self.backend.store

    def namespace(self, name: str) -> NamespaceRoot:
        root = self._namespaces.get(name)
        if root is None:
            root = NamespaceRoot(
                name,
                self.backend,
                bus=self.bus,
                readonly=name in self.settings.readonly_namespaces,
                default_namespace=self.settings.default_namespace,
            )
            self._namespaces[name] = root
            logger.debug("loaded namespace %s (%s mode)", name, self.settings.mode)
        return root

    def preferences(self, name: str) -> PreferenceScope:
        return self.namespace(name).global_scope()

    def client(self, name: str, client_id: str) -> PreferenceScope:
        return self.namespace(name).client(client_id)

    def disconnect(self, client_id: str) -> None:
        for root in self._namespaces.values():
            root.disconnect(client_id)

    def namespaces(self) -> List[str]:
        return sorted(self._namespaces)
