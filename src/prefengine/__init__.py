"""Namespaced preference engine with local-file and remote-row persistence."""

from .core import NamespaceRoot, NotificationBus, PreferenceScope, PreferenceService

__all__ = ["NamespaceRoot", "NotificationBus", "PreferenceScope", "PreferenceService"]
