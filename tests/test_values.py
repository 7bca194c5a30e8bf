from __future__ import annotations

import logging

from prefengine.common.models import RemoteRow, ValueShape
from prefengine.common.values import (
    coerce_legacy_shape,
    coerce_remote_set,
    decode_scalar_row,
    encode_structured,
    remote_key,
    rows_to_value,
    scalars_equal,
    value_changed,
)


def test_value_shape_tags() -> None:
    assert ValueShape.of("x") is ValueShape.SCALAR
    assert ValueShape.of(None) is ValueShape.SCALAR
    assert ValueShape.of(["x"]) is ValueShape.SEQUENCE
    assert ValueShape.of(("x",)) is ValueShape.SEQUENCE
    assert ValueShape.of({"x": 1}) is ValueShape.MAPPING


def test_scalars_equal_follows_text_semantics() -> None:
    assert scalars_equal(1, "1")
    assert scalars_equal(2.0, "2")
    assert scalars_equal("EN", "EN")
    assert not scalars_equal(None, None)
    assert not scalars_equal("", None)
    assert not scalars_equal(["a"], ["a"])
    assert not scalars_equal(1, 2)


def test_value_changed_treats_containers_as_changed() -> None:
    assert value_changed(["a"], ["a"])
    assert value_changed({"a": 1}, {"a": 1})
    assert value_changed(None, "a")
    assert not value_changed("a", "a")


def test_remote_set_coercion_table() -> None:
    assert coerce_remote_set(ValueShape.SEQUENCE, "d") == ["d"]
    assert coerce_remote_set(ValueShape.SCALAR, "d") == "d"
    assert coerce_remote_set(ValueShape.SEQUENCE, {"a": 1}) == {"a": 1}


def test_legacy_shape_coercion() -> None:
    assert coerce_legacy_shape("disabledirsets", "x") == ["x"]
    assert coerce_legacy_shape("alarmvolume", "50") == ["50"]
    assert coerce_legacy_shape("alarmsEnabled", "1") == "1"
    assert coerce_legacy_shape("volume", "50") == "50"
    assert coerce_legacy_shape("alarmtime", ["1", "2"]) == ["1", "2"]


def test_remote_key_folds_namespace() -> None:
    assert remote_key("server", "language") == "language"
    assert remote_key("plugin.extensions", "repos") == "plugin_extensions_repos"
    assert remote_key("custom", "x", default_namespace="custom") == "x"


def test_rows_to_value_rebuilds_by_index() -> None:
    assert rows_to_value([]) is None
    assert rows_to_value([RemoteRow(0, "a")]) == "a"
    rows = [RemoteRow(2, "c"), RemoteRow(0, "a"), RemoteRow(1, "b")]
    assert rows_to_value(rows) == ["a", "b", "c"]


def test_decode_structured_row() -> None:
    assert decode_scalar_row(encode_structured({"b": 2, "a": 1})) == {"a": 1, "b": 2}
    assert decode_scalar_row(None) == ""


def test_decode_failure_is_logged_not_raised(caplog) -> None:
    with caplog.at_level(logging.ERROR, logger="prefengine.common.values"):
        assert decode_scalar_row("json:[1,", context="c1 plugin") == ""
    assert "c1 plugin" in caplog.text
