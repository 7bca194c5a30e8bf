"""Value helpers: scalar comparison, shape coercion, structured encoding."""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .models import (
    INTERNAL_PREFIX,
    LEGACY_SCALAR_EXCEPTIONS,
    LEGACY_SEQUENCE_NAMES,
    LEGACY_SEQUENCE_PREFIXES,
    STRUCTURED_MARKER,
    DEFAULT_NAMESPACE,
    RemoteRow,
    ValueShape,
)

logger = logging.getLogger(__name__)


def is_internal(name: str) -> bool:
    return name.startswith(INTERNAL_PREFIX)


def scalars_equal(old: Any, new: Any) -> bool:
    """Compare two stored values the way the engine suppresses redundant writes.

    Only defined scalars can be equal. ``1`` and ``"1"`` compare equal because
    values round-trip through text in the remote store.
    """

    if old is None or new is None:
        return False
    if ValueShape.of(old) is not ValueShape.SCALAR or ValueShape.of(new) is not ValueShape.SCALAR:
        return False
    if old == new and type(old) is type(new):
        return True
    return as_text(old) == as_text(new)


def value_changed(old: Any, new: Any) -> bool:
    """Containers always count as changed, scalars only when they differ."""

    if ValueShape.of(new) is not ValueShape.SCALAR:
        return True
    return not scalars_equal(old, new)


def as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _wrap_sequence(value: Any) -> List[Any]:
    return [value]


# (old shape, new shape) -> coercion applied on remote-mode set
REMOTE_SET_COERCIONS: Dict[Tuple[ValueShape, ValueShape], Callable[[Any], Any]] = {
    (ValueShape.SEQUENCE, ValueShape.SCALAR): _wrap_sequence,
}


def coerce_remote_set(old_shape: ValueShape, new: Any) -> Any:
    coercion = REMOTE_SET_COERCIONS.get((old_shape, ValueShape.of(new)))
    return coercion(new) if coercion else new


def wants_legacy_sequence(name: str) -> bool:
    if name in LEGACY_SEQUENCE_NAMES:
        return True
    return name.startswith(LEGACY_SEQUENCE_PREFIXES) and name not in LEGACY_SCALAR_EXCEPTIONS


def coerce_legacy_shape(name: str, value: Any) -> Any:
    """Force a bare scalar into a one-element list for legacy sequence prefs."""

    if wants_legacy_sequence(name) and ValueShape.of(value) is ValueShape.SCALAR:
        return [value]
    return value


def remote_key(namespace: str, name: str, default_namespace: str = DEFAULT_NAMESPACE) -> str:
    """Fold the namespace into the remote key, except for the default namespace."""

    if namespace == default_namespace:
        return name
    return f"{namespace.replace('.', '_')}_{name}"


def encode_structured(value: Dict[str, Any]) -> str:
    return STRUCTURED_MARKER + json.dumps(value, ensure_ascii=False, sort_keys=True)


def decode_scalar_row(text: Optional[str], *, context: str = "") -> Any:
    """Decode a single remote row into a scalar or structured value.

    A NULL column reads back as an empty string. A ``json:`` row that fails to
    decode is logged and also reads back as an empty string.
    """

    if text is None:
        return ""
    if not text.startswith(STRUCTURED_MARKER):
        return text
    payload = text[len(STRUCTURED_MARKER):]
    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        logger.error("Bad JSON pref %s: %s", context or "<unknown>", exc)
        return ""


def rows_to_value(rows: Sequence[RemoteRow], *, context: str = "") -> Any:
    """Rebuild a stored value from its remote rows."""

    if not rows:
        return None
    if len(rows) == 1:
        return decode_scalar_row(rows[0].value, context=context)
    size = max(row.index for row in rows) + 1
    values: List[Any] = [None] * size
    for row in rows:
        values[row.index] = row.value
    return values
