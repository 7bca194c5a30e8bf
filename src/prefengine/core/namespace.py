"""Namespace root: value mapping, registries, readonly flag and persistence."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from prefengine.common.models import DEFAULT_NAMESPACE, NamespaceSnapshot
from prefengine.common.values import remote_key
from prefengine.storage.base import PersistenceBackend

from .events import NotificationBus
from .registry import OnChange, PrefRegistry, Validator
from .scope import PreferenceScope
from .validators import resolve_validator

logger = logging.getLogger(__name__)


class NamespaceRoot:
    """Owns one namespace's values and delegates durability to its backend.

    Global values and per-client mappings are kept apart so no global-scope
    call can reach a client's values; both travel in one snapshot.
    """

    def __init__(
        self,
        name: str,
        backend: PersistenceBackend,
        *,
        registry: Optional[PrefRegistry] = None,
        bus: Optional[NotificationBus] = None,
        readonly: bool = False,
        default_namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        self.name = name
        self.backend = backend
        self.registry = registry or PrefRegistry()
        self.bus = bus or NotificationBus()
        self.readonly = readonly
        self.default_namespace = default_namespace
        snapshot = backend.load(name)
        self.prefs: Dict[str, Any] = snapshot.prefs
        self.client_prefs: Dict[str, Dict[str, Any]] = snapshot.clients
        self._global: Optional[PreferenceScope] = None
        self._clients: Dict[str, PreferenceScope] = {}

    @property
    def remote(self) -> bool:
        return self.backend.remote

    def persist(self) -> None:
        self.backend.persist(self.name, NamespaceSnapshot(prefs=self.prefs, clients=self.client_prefs))

    def remote_key(self, pref: str) -> str:
        return remote_key(self.name, pref, self.default_namespace)

    # ------------------------------------------------------------------ #
    # Registry

    def set_validate(self, validator: Validator | str, *names: str, params: Any = None) -> None:
        """Register ``validator`` (callable or stock validator name) for each of ``names``."""

        resolved = resolve_validator(validator)
        for pref in names:
            self.registry.set_validator(pref, resolved, params)

    def set_change(self, callback: OnChange, *names: str) -> None:
        for pref in names:
            self.registry.add_callback(pref, callback)

    def validator(self, pref: str) -> Tuple[Optional[Validator], Any]:
        return self.registry.validator(pref), self.registry.params(pref)

    def callbacks(self, pref: str) -> Tuple[OnChange, ...]:
        return self.registry.callbacks(pref)

    # ------------------------------------------------------------------ #
    # Scopes

    def global_scope(self) -> PreferenceScope:
        if self._global is None:
            self._global = PreferenceScope(self, self.prefs)
        return self._global

    def client(self, client_id: str) -> PreferenceScope:
        scope = self._clients.get(client_id)
        if scope is None:
            mapping = self.client_prefs.setdefault(client_id, {})
            scope = PreferenceScope(self, mapping, client_id=client_id)
            self._clients[client_id] = scope
            logger.debug("created client scope %s:%s", self.name, client_id)
        return scope

    def disconnect(self, client_id: str) -> None:
        """Discard the client's scope; remote-mode client caches are dropped with it."""

        if self._clients.pop(client_id, None) is None:
            return
        if self.remote:
            self.client_prefs.pop(client_id, None)
        logger.debug("discarded client scope %s:%s", self.name, client_id)

    def client_ids(self) -> List[str]:
        return sorted(self._clients)
