"""Helpers for loading the engine configuration document."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .errors import BackendError, ErrorCode
from .models import EngineSettings

DEFAULT_CONFIG_PATH = Path("config/prefengine.json")
ALLOWED_MODES = {"local", "remote"}


@dataclass(slots=True)
class ConfigDocument:
    source: Optional[Path]
    version: int
    engine: EngineSettings


def load_engine_config(
    config_path: Optional[Path] = None,
    *,
    overrides: Optional[Dict[str, Any]] = None,
) -> EngineSettings:
    """Load configuration JSON, validate it, and resolve engine settings.

    Without an explicit path a missing default file falls back to built-in
    defaults; an explicit path that does not exist is an error.
    """

    return load_config_document(config_path=config_path, overrides=overrides).engine


def load_config_document(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ConfigDocument:
    if config_path is None and not DEFAULT_CONFIG_PATH.exists():
        raw: Dict[str, Any] = {"version": 1, "engine": {}}
        source: Optional[Path] = None
    else:
        source = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
        raw = _read_config_json(source)

    label = str(source) if source else "<defaults>"
    version = _require_positive_int(raw.get("version"), "version", label)
    engine_section = raw.get("engine", {})
    if not isinstance(engine_section, Mapping):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"'engine' section must be an object in {label}")

    merged = {**engine_section, **(overrides or {})}
    return ConfigDocument(source=source, version=version, engine=_build_engine_settings(merged, label))


# ---------------------------------------------------------------------------
# Internal helpers


def _read_config_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError as exc:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"Config file '{path}' not found") from exc
    except json.JSONDecodeError as exc:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"Config file '{path}' is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"Config file '{path}' must contain an object")
    return data


def _build_engine_settings(data: Mapping[str, Any], source: str) -> EngineSettings:
    defaults = EngineSettings()
    mode = _require_string(data.get("mode", defaults.mode), "engine.mode", source).lower()
    if mode not in ALLOWED_MODES:
        allowed = ", ".join(sorted(ALLOWED_MODES))
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"Unsupported engine.mode '{mode}' in {source}. Allowed: {allowed}",
        )
    return EngineSettings(
        mode=mode,  # type: ignore[arg-type]
        prefs_dir=_require_string(data.get("prefs_dir", defaults.prefs_dir), "engine.prefs_dir", source),
        remote_db=_require_string(data.get("remote_db", defaults.remote_db), "engine.remote_db", source),
        default_namespace=_require_string(
            data.get("default_namespace", defaults.default_namespace),
            "engine.default_namespace",
            source,
        ),
        readonly_namespaces=_require_string_list(
            data.get("readonly_namespaces", []),
            "engine.readonly_namespaces",
            source,
        ),
    )


def _require_string(value: Any, field: str, source: str) -> str:
    if not isinstance(value, str):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"{field} must be a string in {source}")
    text = value.strip()
    if not text:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"{field} must be non-empty in {source}")
    return text


def _require_string_list(value: Any, field: str, source: str) -> List[str]:
    if not isinstance(value, list):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"{field} must be a list in {source}")
    return [_require_string(item, f"{field}[{idx}]", source) for idx, item in enumerate(value)]


def _require_positive_int(value: Any, field: str, source: str) -> int:
    try:
        num = int(value)
    except (TypeError, ValueError) as exc:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"{field} must be an integer in {source}",
        ) from exc
    if num <= 0:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"{field} must be greater than zero in {source}",
        )
    return num
