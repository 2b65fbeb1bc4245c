from __future__ import annotations

import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path("~/.config/friction/config.json").expanduser()
DEFAULT_STATE_PATH = "~/.config/friction/state.json"

CONFIG_ENV_OVERRIDES = {
    "api_base": "FRICTION_API_BASE",
    "report_url": "FRICTION_REPORT_URL",
    "request_timeout_s": "FRICTION_REQUEST_TIMEOUT_S",
    "capture_cooldown_ms": "FRICTION_CAPTURE_COOLDOWN_MS",
    "status_clear_ms": "FRICTION_STATUS_CLEAR_MS",
    "badge_clear_ms": "FRICTION_BADGE_CLEAR_MS",
    "default_state": "FRICTION_DEFAULT_STATE",
    "state_path": "FRICTION_STATE",
    "log_level": "FRICTION_LOG_LEVEL",
    "log_file": "FRICTION_LOG_FILE",
}

_INT_KEYS = {"capture_cooldown_ms", "status_clear_ms", "badge_clear_ms"}
_FLOAT_KEYS = {"request_timeout_s"}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("FRICTION_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    """Return the settings object stored at ``path``; a missing or blank file is empty."""

    config_path = get_config_path(path)
    try:
        raw = config_path.read_text()
    except FileNotFoundError:
        return {}
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid config json in {config_path}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"config in {config_path} must be an object")
    return data


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class FrictionConfig:
    api_base: str = "https://friction-production.up.railway.app"
    report_url: str = "https://nofriction.netlify.app/reports"
    request_timeout_s: float = 10.0
    capture_cooldown_ms: int = 3000
    status_clear_ms: int = 2000
    badge_clear_ms: int = 1200
    default_state: str = "unreviewed"
    state_path: str = DEFAULT_STATE_PATH
    log_level: str = "WARNING"
    log_file: str | None = None


def _parse_int(value: object, default: int, *, key: str) -> int:
    if value is None:
        return default
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def _parse_float(value: object, default: float, *, key: str) -> float:
    if value is None:
        return default
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def load_config(path: Path | None = None) -> FrictionConfig:
    cfg = FrictionConfig()
    try:
        data = read_config_file(path)
    except ValueError as exc:
        warnings.warn(f"{exc}; using defaults", RuntimeWarning, stacklevel=2)
        data = {}
    cfg = _apply_dict(cfg, data)
    cfg = _apply_dict(cfg, get_env_overrides())
    return cfg


def _apply_dict(cfg: FrictionConfig, data: dict[str, Any]) -> FrictionConfig:
    for key, value in data.items():
        if not hasattr(cfg, key):
            continue
        if key in _INT_KEYS:
            setattr(cfg, key, _parse_int(value, getattr(cfg, key), key=key))
            continue
        if key in _FLOAT_KEYS:
            setattr(cfg, key, _parse_float(value, getattr(cfg, key), key=key))
            continue
        if key == "api_base" and isinstance(value, str):
            setattr(cfg, key, value.strip().rstrip("/"))
            continue
        setattr(cfg, key, value)
    return cfg
