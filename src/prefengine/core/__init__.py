"""Preference engine core: namespaces, scopes, registries and notifications."""

from .events import NotificationBus
from .namespace import NamespaceRoot
from .registry import PrefRegistry
from .scope import PrefAccessor, PreferenceScope
from .service import PreferenceService, build_backend
from .validators import STOCK_VALIDATORS

__all__ = [
    "NamespaceRoot",
    "NotificationBus",
    "PrefAccessor",
    "PrefRegistry",
    "PreferenceScope",
    "PreferenceService",
    "STOCK_VALIDATORS",
    "build_backend",
]
