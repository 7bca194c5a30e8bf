"""Local durable store: one JSON snapshot file per namespace."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from prefengine.common.errors import BackendError, ErrorCode
from prefengine.common.models import NamespaceSnapshot

from .base import PersistenceBackend

logger = logging.getLogger(__name__)

SNAPSHOT_SUFFIX = ".prefs.json"
SNAPSHOT_VERSION = 1


class LocalStore(PersistenceBackend):
    """Rewrites the whole namespace snapshot on every mutation."""

    remote = False

    def __init__(self, prefs_dir: Path | str) -> None:
        self.prefs_dir = Path(prefs_dir)

    def path_for(self, namespace: str) -> Path:
        safe = namespace.replace("/", "_")
        return self.prefs_dir / f"{safe}{SNAPSHOT_SUFFIX}"

    def load(self, namespace: str) -> NamespaceSnapshot:
        path = self.path_for(namespace)
        if not path.exists():
            return NamespaceSnapshot()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            logger.warning("Preference file %s is corrupted, starting empty: %s", path, exc)
            return NamespaceSnapshot()
        except OSError as exc:
            raise BackendError(
                ErrorCode.PERSISTENCE_ERROR,
                f"Unable to read preference file '{path}'",
                context={"namespace": namespace},
            ) from exc
        if not isinstance(data, dict):
            return NamespaceSnapshot()
        return NamespaceSnapshot(prefs=_mapping(data.get("prefs")), clients=_client_mappings(data.get("clients")))

    def persist(self, namespace: str, snapshot: NamespaceSnapshot) -> None:
        path = self.path_for(namespace)
        payload = {
            "version": SNAPSHOT_VERSION,
            "namespace": namespace,
            "prefs": dict(snapshot.prefs),
            "clients": {client_id: dict(prefs) for client_id, prefs in snapshot.clients.items()},
        }
        temp_path = path.with_suffix(".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            temp_path.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            raise BackendError(
                ErrorCode.PERSISTENCE_ERROR,
                f"Unable to write preference file '{path}': {exc}",
                context={"namespace": namespace},
            ) from exc
        logger.debug("persisted namespace %s to %s", namespace, path)


def _mapping(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


def _client_mappings(value: Any) -> Dict[str, Dict[str, Any]]:
    if not isinstance(value, dict):
        return {}
    return {str(client_id): _mapping(prefs) for client_id, prefs in value.items()}
