"""Configuration utilities.

- Fail fast on missing files / invalid structure.
- Keep config mutation explicit and localized.
"""

from __future__ import annotations

import os
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import yaml


class ConfigError(ValueError):
    """Raised when configuration is missing or invalid."""


DEFAULT_MOVES = ["reverse", "swap", "rotate"]

DEFAULT_SCHEDULE: Dict[str, Any] = {
    "kind": "geometric",
    "initial": 150.0,
    "floor": 1e-2,
    "alpha": 0.95,
}


def load_yaml(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        obj = yaml.safe_load(f)
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ConfigError(f"YAML root must be a mapping (dict). Got: {type(obj).__name__} @ {path}")
    return obj


def save_yaml(obj: Dict[str, Any], path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(obj, f, allow_unicode=True, sort_keys=False)


def now_tag() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = deepcopy(base)

    def rec(a: Dict[str, Any], b: Dict[str, Any]) -> None:
        for k, v in b.items():
            if isinstance(v, dict) and isinstance(a.get(k), dict):
                rec(a[k], v)
            else:
                a[k] = v

    rec(out, override)
    return out


def deep_set(cfg: Dict[str, Any], dotted_path: str, value: Any) -> None:
    keys = dotted_path.split(".")
    cur: Dict[str, Any] = cfg
    for k in keys[:-1]:
        nxt = cur.get(k)
        if nxt is None:
            nxt = {}
            cur[k] = nxt
        if not isinstance(nxt, dict):
            raise ConfigError(
                f"Cannot deep-set '{dotted_path}': '{k}' is not a dict (got {type(nxt).__name__})"
            )
        cur = nxt
    cur[keys[-1]] = value


def _coerce_scalar(v: Any) -> Any:
    """
    Sweep values written as strings in YAML are turned into the closest type.
    - "none"/"null" -> None
    - "true"/"false" -> bool
    - "1", "1.2" -> int/float
    - anything else stays a str
    """
    if v is None:
        return None
    if isinstance(v, (int, float, bool)):
        return v
    if isinstance(v, str):
        s = v.strip()
        lo = s.lower()
        if lo in ("none", "null", "~"):
            return None
        if lo in ("true", "false"):
            return lo == "true"
        try:
            if "." in s or "e" in lo:
                return float(s)
            return int(s)
        except ValueError:
            return s
    return v


@dataclass(frozen=True)
class ExperimentSpec:
    exp_name: str
    param_path: str
    values: List[Any]


def load_experiment_spec(path: str) -> ExperimentSpec:
    data = load_yaml(path)
    exp_name = str(data.get("exp_name") or "exp")
    param_path = str(data.get("param_path") or "")
    values = data.get("values")

    if not param_path:
        raise ConfigError(f"Missing 'param_path' in sweep config: {path}")
    if not isinstance(values, list) or not values:
        raise ConfigError(f"Missing or invalid 'values' in sweep config: {path}")

    vals = [_coerce_scalar(v) for v in values]
    return ExperimentSpec(exp_name=exp_name, param_path=param_path, values=vals)


def _positive_int(section: Dict[str, Any], key: str, default: int) -> int:
    raw = section.get(key, default)
    try:
        value = int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"anneal.{key} must be an integer (got {raw!r})") from e
    if value <= 0:
        raise ConfigError(f"anneal.{key} must be > 0 (got {value})")
    return value


@dataclass(frozen=True)
class AnnealConfig:
    """Validated view of the `anneal` config section."""

    outer_loops: int = 100
    inner_loops: int = 5000
    notification_cycle: int = 1000
    seed: Optional[int] = None
    moves: List[str] = field(default_factory=lambda: list(DEFAULT_MOVES))
    schedule: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_SCHEDULE))

    @staticmethod
    def from_cfg(cfg: dict) -> "AnnealConfig":
        acfg = cfg.get("anneal", {})
        if acfg is None:
            acfg = {}
        if not isinstance(acfg, dict):
            raise ConfigError(f"'anneal' section must be a mapping (got {type(acfg).__name__})")

        seed = acfg.get("seed")
        if seed is not None:
            try:
                seed = int(seed)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"anneal.seed must be an integer or null (got {seed!r})") from e

        moves = acfg.get("moves", DEFAULT_MOVES)
        if not isinstance(moves, list) or not moves:
            raise ConfigError(f"anneal.moves must be a non-empty list (got {moves!r})")

        schedule = acfg.get("schedule", {})
        if not isinstance(schedule, dict):
            raise ConfigError(f"anneal.schedule must be a mapping (got {type(schedule).__name__})")

        return AnnealConfig(
            outer_loops=_positive_int(acfg, "outer_loops", 100),
            inner_loops=_positive_int(acfg, "inner_loops", 5000),
            notification_cycle=_positive_int(acfg, "notification_cycle", 1000),
            seed=seed,
            moves=[str(m) for m in moves],
            schedule=merge_dicts(DEFAULT_SCHEDULE, schedule),
        )
