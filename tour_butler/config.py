"""Runtime configuration loader for the signup butler."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict


@dataclass(frozen=True)
class Config:
    SIGNUP_TIMEZONE: str
    SUBSTITUTES_HEADING: str
    ROSTER_ORDER: str
    MULTI_SLOT_SIGNUPS: bool
    MAX_NAME_WORDS: int
    TEAM_LABEL_FORMAT: str
    ANNOUNCEMENT_MIN_SLOTS: int


DEFAULTS: Dict[str, Any] = {
    "SIGNUP_TIMEZONE": "Europe/Lisbon",
    "SUBSTITUTES_HEADING": "Suplentes",
    "ROSTER_ORDER": "chronological",
    "MULTI_SLOT_SIGNUPS": False,
    "MAX_NAME_WORDS": 4,
    "TEAM_LABEL_FORMAT": " ({number})",
    "ANNOUNCEMENT_MIN_SLOTS": 2,
}

ROSTER_ORDERS = ("chronological", "team")

CONFIG_FILE = "butler.yml"

_CONFIG_CACHE: Config | None = None


def _coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        s = value.strip().lower()
        if s in {"1", "true", "t", "yes", "y", "on"}:
            return True
        if s in {"0", "false", "f", "no", "n", "off", ""}:
            return False
    return default


def _coerce_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        s = value.strip()
        try:
            return int(float(s))
        except ValueError:
            return default
    return default


def _normalize_value(key: str, value: Any, defaults: Dict[str, Any]) -> Any:
    default = defaults[key]
    if isinstance(default, bool):
        return _coerce_bool(value, default)
    if isinstance(default, int):
        return _coerce_int(value, default)
    if value is None:
        return default
    return str(value)


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        import yaml  # type: ignore
    except Exception:
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except Exception:
        return {}
    if not isinstance(data, dict):
        return {}
    return {str(k).upper(): v for k, v in data.items()}


def get_config() -> Config:
    """Load configuration with precedence: ENV > butler.yml > defaults."""

    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    values: Dict[str, Any] = dict(DEFAULTS)

    yaml_values = _read_yaml(Path(CONFIG_FILE))
    for key, val in yaml_values.items():
        if key in values:
            values[key] = _normalize_value(key, val, DEFAULTS)

    for key in list(values.keys()):
        env_val = os.getenv(key)
        if env_val is not None:
            values[key] = _normalize_value(key, env_val, DEFAULTS)

    order = str(values["ROSTER_ORDER"]).strip().lower()
    if order not in ROSTER_ORDERS:
        print(f"[warn] config: unknown ROSTER_ORDER '{order}' – using 'chronological'")
        order = "chronological"

    cfg = Config(
        SIGNUP_TIMEZONE=str(values["SIGNUP_TIMEZONE"]),
        SUBSTITUTES_HEADING=str(values["SUBSTITUTES_HEADING"]),
        ROSTER_ORDER=order,
        MULTI_SLOT_SIGNUPS=bool(values["MULTI_SLOT_SIGNUPS"]),
        MAX_NAME_WORDS=max(1, int(values["MAX_NAME_WORDS"])),
        TEAM_LABEL_FORMAT=str(values["TEAM_LABEL_FORMAT"]),
        ANNOUNCEMENT_MIN_SLOTS=max(1, int(values["ANNOUNCEMENT_MIN_SLOTS"])),
    )

    _CONFIG_CACHE = cfg
    return cfg


__all__ = ["Config", "DEFAULTS", "ROSTER_ORDERS", "get_config"]
