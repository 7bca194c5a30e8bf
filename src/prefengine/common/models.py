"""Data models shared across scopes, namespaces, and storage backends."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, NamedTuple, Optional

INTERNAL_PREFIX = "_"
TIMESTAMP_PREFIX = "_ts_"
STRUCTURED_MARKER = "json:"

PREFSET_TOPIC = "prefset"
DEFAULT_NAMESPACE = "server"

# Names whose remote value must always come back as a sequence.
LEGACY_SEQUENCE_NAMES = frozenset({"disabledirsets"})
LEGACY_SEQUENCE_PREFIXES = ("alarm",)
LEGACY_SCALAR_EXCEPTIONS = frozenset({"alarmfadeseconds", "alarmsEnabled"})

BackendMode = Literal["local", "remote"]


class ValueShape(str, Enum):
    """Explicit shape tag tracked next to each stored preference."""

    SCALAR = "scalar"
    SEQUENCE = "sequence"
    MAPPING = "mapping"

    @classmethod
    def of(cls, value: Any) -> "ValueShape":
        if isinstance(value, (list, tuple)):
            return cls.SEQUENCE
        if isinstance(value, dict):
            return cls.MAPPING
        return cls.SCALAR


class SetResult(NamedTuple):
    """Outcome of ``PreferenceScope.set``: the value now stored and a success flag."""

    value: Any
    success: bool


@dataclass(slots=True)
class NamespaceSnapshot:
    """Durable state of one namespace: global values plus one mapping per client."""

    prefs: Dict[str, Any] = field(default_factory=dict)
    clients: Dict[str, Dict[str, Any]] = field(default_factory=dict)


@dataclass(slots=True)
class RemoteRow:
    """Single row of the remote preference table."""

    index: int
    value: Optional[str]


@dataclass(slots=True)
class PrefSetEvent:
    """Notification emitted after a successful ``set``.

    ``target`` is the client id for client-bound scopes and ``None`` for the
    global scope.
    """

    target: Optional[str]
    namespace: str
    name: str
    new_value: Any
    topic: str = PREFSET_TOPIC

    def to_dict(self) -> Dict[str, object]:
        return {
            "target": self.target,
            "topic": self.topic,
            "namespace": self.namespace,
            "name": self.name,
            "newValue": self.new_value,
        }


@dataclass(slots=True)
class EngineSettings:
    """Resolved engine configuration."""

    mode: BackendMode = "local"
    prefs_dir: str = "prefs"
    remote_db: str = "prefs/remote.db"
    default_namespace: str = DEFAULT_NAMESPACE
    readonly_namespaces: List[str] = field(default_factory=list)

    @property
    def is_remote(self) -> bool:
        return self.mode == "remote"
