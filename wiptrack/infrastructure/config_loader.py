"""Config loading helpers."""
from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from wiptrack.domain.stages import QueueThresholds, StageRule, StageTaxonomy

from .config import CONFIG


class ConfigError(ValueError):
    """Raised when a configuration file is unreadable or invalid."""


def _merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def default_config() -> Dict[str, Any]:
    return copy.deepcopy(CONFIG)


def load_config(path: str | Path | None = None) -> Dict[str, Any]:
    """Return the defaults with the file at *path* (JSON or YAML) merged on top."""

    config = default_config()
    if path is None:
        return config
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as fh:
            if path.suffix.lower() in {".yaml", ".yml"}:
                payload = yaml.safe_load(fh)
            else:
                payload = json.load(fh)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"cannot read config {path}: {exc}") from exc
    if payload is None:
        return config
    if not isinstance(payload, Mapping):
        raise ConfigError(f"config {path} must contain a mapping at the top level")
    return _merge(config, payload)


def _thresholds(payload: Mapping[str, Any]) -> QueueThresholds:
    try:
        return QueueThresholds(min=int(payload["min"]), med=int(payload["med"]), max=int(payload["max"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"invalid queue thresholds {payload!r}") from exc


def taxonomy_from_config(config: Optional[Mapping[str, Any]] = None) -> StageTaxonomy:
    config = config if config is not None else CONFIG
    try:
        rules = {
            str(stage): StageRule.from_mapping(rule)
            for stage, rule in (config.get("stage_rules") or {}).items()
        }
    except (AttributeError, ValueError) as exc:
        raise ConfigError(f"invalid stage rule: {exc}") from exc
    return StageTaxonomy(
        priority={str(k): int(v) for k, v in (config.get("stage_priority") or {}).items()},
        condensed={str(k): str(v) for k, v in (config.get("condensed_stages") or {}).items()},
        condensed_order=tuple(str(s) for s in config.get("condensed_order") or ()),
        exit_steps=frozenset(str(s) for s in config.get("exit_steps") or ()),
        other_stage=str(config.get("other_stage") or "Other"),
        rules=rules,
        thresholds={str(k): _thresholds(v) for k, v in (config.get("queue_thresholds") or {}).items()},
        default_thresholds=_thresholds(config.get("default_queue_thresholds") or {"min": 5, "med": 10, "max": 15}),
    )


def duration_mode(config: Optional[Mapping[str, Any]] = None) -> str:
    mode = str((config if config is not None else CONFIG).get("duration_mode") or "working")
    if mode not in {"working", "calendar"}:
        raise ConfigError(f"duration_mode must be 'working' or 'calendar', got {mode!r}")
    return mode
