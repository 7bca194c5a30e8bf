"""Stock validators selectable by name when registering a preference."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from prefengine.common.models import ValueShape

from .registry import Validator


def validate_int(name: str, new: Any, params: Any, old: Any, scope: Any) -> bool:
    if isinstance(new, bool):
        return False
    if isinstance(new, int):
        return True
    return isinstance(new, str) and new.strip().lstrip("-").isdigit()


def validate_num(name: str, new: Any, params: Any, old: Any, scope: Any) -> bool:
    if isinstance(new, bool):
        return False
    if isinstance(new, (int, float)):
        return True
    try:
        float(new)
    except (TypeError, ValueError):
        return False
    return True


def validate_array(name: str, new: Any, params: Any, old: Any, scope: Any) -> bool:
    return ValueShape.of(new) is ValueShape.SEQUENCE


def validate_hash(name: str, new: Any, params: Any, old: Any, scope: Any) -> bool:
    return ValueShape.of(new) is ValueShape.MAPPING


def validate_defined(name: str, new: Any, params: Any, old: Any, scope: Any) -> bool:
    return new is not None


def validate_false(name: str, new: Any, params: Any, old: Any, scope: Any) -> bool:
    return False


def validate_intlimit(name: str, new: Any, params: Any, old: Any, scope: Any) -> bool:
    """Integer inside ``params["low"]`` .. ``params["high"]`` (either bound optional)."""

    if not validate_int(name, new, params, old, scope):
        return False
    number = int(new)
    limits = params or {}
    low = limits.get("low")
    high = limits.get("high")
    if low is not None and number < low:
        return False
    if high is not None and number > high:
        return False
    return True


def validate_isin(name: str, new: Any, params: Any, old: Any, scope: Any) -> bool:
    return new in (params or ())


def validate_file(name: str, new: Any, params: Any, old: Any, scope: Any) -> bool:
    return new in (None, "") or Path(str(new)).is_file()


def validate_dir(name: str, new: Any, params: Any, old: Any, scope: Any) -> bool:
    return new in (None, "") or Path(str(new)).is_dir()


STOCK_VALIDATORS: Dict[str, Validator] = {
    "int": validate_int,
    "num": validate_num,
    "array": validate_array,
    "hash": validate_hash,
    "defined": validate_defined,
    "false": validate_false,
    "intlimit": validate_intlimit,
    "isin": validate_isin,
    "file": validate_file,
    "dir": validate_dir,
}


def resolve_validator(validator: Validator | str) -> Validator:
    if callable(validator):
        return validator
    try:
        return STOCK_VALIDATORS[validator]
    except KeyError as exc:
        known = ", ".join(sorted(STOCK_VALIDATORS))
        raise ValueError(f"Unknown validator '{validator}'. Known: {known}") from exc
