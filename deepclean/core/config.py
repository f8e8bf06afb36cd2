#!/usr/bin/env python3
"""Configuration for deepclean."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

HOME = str(Path.home())
CONFIG_PATHS = [
    os.path.join(HOME, ".deepcleanrc"),
    os.path.join(HOME, ".config", "deepclean", "config.json"),
]

DEFAULTS: dict[str, Any] = {
    "exclude_targets": [],
    "temp_file_age_days": 7,
    "keepalive_interval_seconds": 60,
    "protected_apps": [],
    "protect_finder_metadata": False,
}

VALID_KEYS = frozenset(DEFAULTS.keys())
BOOL_KEYS = frozenset(k for k, v in DEFAULTS.items() if isinstance(v, bool))

# (min, max) accepted for integer keys; anything outside keeps the default
INT_RANGES: dict[str, tuple[int, int]] = {
    "temp_file_age_days": (1, 365),
    "keepalive_interval_seconds": (10, 120),
}


def config_path() -> str:
    """Preferred config file path."""
    return CONFIG_PATHS[0]


def config_exists() -> bool:
    """True if any known config file exists."""
    for p in CONFIG_PATHS:
        if os.path.isfile(p):
            return True
    return False


def _string_list(value: list) -> list[str]:
    return [str(x) for x in value if isinstance(x, str)][:200]


def load() -> dict[str, Any]:
    """Load config from first existing file. Returns defaults + overrides."""
    out = dict(DEFAULTS)
    for p in CONFIG_PATHS:
        if not os.path.isfile(p):
            continue
        try:
            with open(p, "r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, dict):
                continue
            for k, v in raw.items():
                if k not in VALID_KEYS:
                    continue
                if k in ("exclude_targets", "protected_apps") and isinstance(v, list):
                    out[k] = _string_list(v)
                elif k in BOOL_KEYS and isinstance(v, bool):
                    out[k] = v
                elif k in INT_RANGES and isinstance(v, (int, float)) and not isinstance(v, bool):
                    lo, hi = INT_RANGES[k]
                    val = int(v)
                    if lo <= val <= hi:
                        out[k] = val
            return out
        except (OSError, json.JSONDecodeError):
            continue
    return out


def save(cfg: dict[str, Any], path: str | None = None) -> None:
    """Write config to path (default: config_path()). Creates parent dirs."""
    p = path or config_path()
    dirname = os.path.dirname(p)
    if dirname:
        os.makedirs(dirname, exist_ok=True)
    to_write = {k: cfg.get(k, DEFAULTS[k]) for k in sorted(VALID_KEYS)}
    with open(p, "w", encoding="utf-8") as f:
        json.dump(to_write, f, indent=2)


def init_config() -> str:
    """Create default config file. Returns path used."""
    p = config_path()
    save(DEFAULTS, p)
    return p
