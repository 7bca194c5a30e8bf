"""Preference scope: global or client-bound view over a namespace."""
from __future__ import annotations

import copy
import logging
import time
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from prefengine.common.models import TIMESTAMP_PREFIX, PrefSetEvent, SetResult, ValueShape
from prefengine.common.values import (
    coerce_legacy_shape,
    coerce_remote_set,
    is_internal,
    rows_to_value,
    scalars_equal,
    value_changed,
)

if TYPE_CHECKING:  # pragma: no cover
    from .namespace import NamespaceRoot

logger = logging.getLogger(__name__)


class PrefAccessor:
    """Named shorthand: ``acc()`` reads the preference, ``acc(value)`` sets it."""

    __slots__ = ("scope", "name")

    def __init__(self, scope: "PreferenceScope", name: str) -> None:
        self.scope = scope
        self.name = name

    def __call__(self, *args: Any) -> Any:
        if not args:
            return self.scope.get(self.name)
        if len(args) == 1:
            return self.scope.set(self.name, args[0])
        raise TypeError(f"accessor for '{self.name}' takes at most one value, got {len(args)}")

    def __repr__(self) -> str:
        return f"PrefAccessor({self.scope!r}, {self.name!r})"


class PreferenceScope:
    """Drives validation, persistence and notification for one set of values.

    The global scope works on the namespace mapping itself. A client scope
    works on its own mapping and never falls back to global values.
    """

    def __init__(
        self,
        root: "NamespaceRoot",
        prefs: Dict[str, Any],
        *,
        client_id: Optional[str] = None,
    ) -> None:
        self._root = root
        self._prefs = prefs
        self.client_id = client_id
        self._shapes: Dict[str, ValueShape] = {}
        self._accessors: Dict[str, PrefAccessor] = {}

    def __repr__(self) -> str:
        return f"PreferenceScope({self._root.name!r}, client={self.client_id!r})"

    @property
    def is_global(self) -> bool:
        return self.client_id is None

    @property
    def _remote(self) -> bool:
        return self._root.remote

    @property
    def _label(self) -> str:
        return f"{self._root.name}:{self.client_id or ''}"

    # ------------------------------------------------------------------ #
    # Reads

    def get(self, name: str, force_reload: bool = False) -> Any:
        value = self._prefs.get(name)
        if self._remote and self.client_id is not None and (value is None or force_reload):
            value = self._fetch_remote(name)
        if self._remote and value is not None:
            value = coerce_legacy_shape(name, value)
        return value

    def get_values(self, name: str, force_reload: bool = False) -> List[Any]:
        """Return the preference as a list: sequence elements individually, else the single value."""

        value = self.get(name, force_reload)
        if value is None:
            return []
        if ValueShape.of(value) is ValueShape.SEQUENCE:
            return list(value)
        return [value]

    def exists(self, name: str) -> bool:
        return name in self._prefs

    def all(self) -> Dict[str, Any]:
        return {name: value for name, value in self._prefs.items() if not is_internal(name)}

    def namespace(self) -> str:
        return self._root.name

    def has_validator(self, name: str) -> bool:
        return self._root.registry.has_validator(name)

    def timestamp(self, name: str, wipe: bool = False) -> int:
        """Last-modified time of ``name``; always 0 in remote mode.

        ``wipe`` stores -1 so callers comparing timestamps treat the value as
        stale until the next ``set``.
        """

        if self._remote:
            return 0
        key = TIMESTAMP_PREFIX + name
        if wipe:
            self._prefs[key] = -1
        return self._prefs.setdefault(key, 0) or 0

    def accessor(self, name: str) -> PrefAccessor:
        acc = self._accessors.get(name)
        if acc is None:
            logger.debug("creating accessor for %s:%s", self._label, name)
            acc = self._accessors[name] = PrefAccessor(self, name)
        return acc

    # ------------------------------------------------------------------ #
    # Writes

    def validate(self, name: str, new_value: Any) -> bool:
        validator, params = self._root.validator(name)
        if validator is None:
            return True
        return bool(validator(name, new_value, params, self._prefs.get(name), self))

    def set(self, name: str, value: Any, skip_remote_write: bool = False) -> SetResult:
        old = self._prefs.get(name)
        if old is None and self._remote and self.client_id is not None:
            old = self._fetch_remote(name)

        if scalars_equal(old, value):
            return SetResult(value, True)

        if not self.validate(name, value):
            logger.warning("attempting to set %s:%s to %r - invalid value", self._label, name, value)
            return SetResult(old, False)

        if is_internal(name) and not self._remote:
            logger.warning("attempting to set %s:%s - internal preference names are reserved", self._label, name)
            return SetResult(old, False)

        if self._root.readonly:
            logger.warning(
                "attempt to set %s:%s while namespace is readonly", self._label, name, stack_info=True
            )
            return SetResult(old, False)

        new = coerce_remote_set(self._shape(name), value) if self._remote else value
        logger.debug("setting %s:%s to %r", self._label, name, new)

        self._store(name, new)
        self._root.persist()

        if self._remote and self.client_id is not None and not skip_remote_write:
            self._root.backend.write_remote(self.client_id, self._root.remote_key(name), new)

        if value_changed(old, new):
            for callback in self._root.callbacks(name):
                logger.debug("executing on change function %r for %s:%s", callback, self._label, name)
                callback(name, new, self)

        self._root.bus.publish(
            PrefSetEvent(target=self.client_id, namespace=self._root.name, name=name, new_value=new)
        )
        return SetResult(new, True)

    def init(self, defaults: Mapping[str, Any]) -> None:
        """Assign defaults for names not yet present, without validation or callbacks.

        Callables are providers invoked with this scope; literals are deep
        copied so scopes never share containers.
        """

        changed = False
        for name, default in defaults.items():
            if name in self._prefs:
                continue
            value = default(self) if callable(default) else copy.deepcopy(default)
            logger.info("init %s:%s to %r", self._label, name, value)
            self._store(name, value)
            changed = True
        if changed:
            self._root.persist()

    def remove(self, *names: str) -> None:
        for name in names:
            logger.info("removing %s:%s", self._label, name)
            self._prefs.pop(name, None)
            self._shapes.pop(name, None)
            if not self._remote:
                self._prefs.pop(TIMESTAMP_PREFIX + name, None)
            elif self.client_id is not None:
                self._root.backend.clear_remote(self.client_id, self._root.remote_key(name))
        self._root.persist()

    def clear(self) -> None:
        """Drop every cached value of this scope. Remote mode only."""

        if not self._remote:
            logger.warning("clear on %s ignored: only supported in remote mode", self._label)
            return
        self._prefs.clear()
        self._shapes.clear()

    def load_hash(self, raw: Mapping[str, Any]) -> None:
        """Bulk-assign a raw snapshot, bypassing validation, coercion and notification."""

        for name, value in raw.items():
            self._prefs[name] = value
            self._shapes[name] = ValueShape.of(value)

    # ------------------------------------------------------------------ #

    def _store(self, name: str, value: Any) -> None:
        self._prefs[name] = value
        self._shapes[name] = ValueShape.of(value)
        if not self._remote:
            self._prefs[TIMESTAMP_PREFIX + name] = int(time.time())

    def _shape(self, name: str) -> ValueShape:
        shape = self._shapes.get(name)
        if shape is None:
            shape = self._shapes[name] = ValueShape.of(self._prefs.get(name))
        return shape

    def _fetch_remote(self, name: str) -> Any:
        key = self._root.remote_key(name)
        rows = self._root.backend.read_remote(self.client_id, key)
        value = rows_to_value(rows, context=f"{self.client_id} {key}")
        logger.debug("fetched client pref %s-%s = %r", self.client_id, key, value)
        if value is None:
            self._prefs.pop(name, None)
            self._shapes.pop(name, None)
        else:
            self._prefs[name] = value
            self._shapes[name] = ValueShape.of(value)
        return value
