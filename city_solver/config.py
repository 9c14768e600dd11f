from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

CONFIG_ENV = "CITY_SOLVER_CONFIG"

DEFAULT_CONFIG: Dict[str, Any] = {
    "share_base_url": "http://localhost:8000/",
    "log_level": "WARNING",
    "api_title": "City Solver Tool API",
    "max_history": 500,
    "solve_timeout": 10.0,  # seconds per difficulty/hint search in the API and CLI; 0 = no limit
}


class DotDict(dict):
    __getattr__ = dict.get
    __setattr__ = dict.__setitem__
    __delattr__ = dict.__delitem__


def load_yaml(path: str | Path) -> DotDict:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return DotDict(data)


def apply_settings(cfg: DotDict, settings: Mapping[str, Any], source: str) -> DotDict:
    """Copy known, non-None settings into cfg. Unknown keys are typos: raise ValueError."""
    unknown = sorted(set(settings) - set(DEFAULT_CONFIG))
    if unknown:
        raise ValueError(f"{source}: unknown setting(s) {', '.join(unknown)}")
    cfg.update((key, value) for key, value in settings.items() if value is not None)
    return cfg


def load_config(path: str | Path | None = None, **overrides) -> DotDict:
    """Defaults, then the YAML file (argument or $CITY_SOLVER_CONFIG), then non-None overrides."""
    cfg = DotDict(DEFAULT_CONFIG)
    path = path or os.environ.get(CONFIG_ENV)
    if path:
        apply_settings(cfg, load_yaml(path), str(path))
    return apply_settings(cfg, overrides, "overrides")
