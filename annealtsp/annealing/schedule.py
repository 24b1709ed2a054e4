"""Cooling schedules.

A schedule is a pure function of the search state: no hidden randomness and
no state of its own, so each one can be tested in isolation.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Type

from ..config import ConfigError


class CoolingSchedule(ABC):
    @abstractmethod
    def initial_temperature(self) -> float:
        """Temperature before the first outer step."""

    @abstractmethod
    def next_temperature(self, state: Any) -> float:
        """Temperature for the upcoming outer step.

        `state` is the optimizer's read-only snapshot; implementations may
        use any of its fields (temperature, outer, inner, energies).
        """


@dataclass(frozen=True)
class GeometricCoolingSchedule(CoolingSchedule):
    """T_next = max(T * alpha, floor)."""

    initial: float = 150.0
    floor: float = 1e-2
    alpha: float = 0.95

    def __post_init__(self):
        if not (math.isfinite(self.initial) and self.initial > 0):
            raise ConfigError(f"initial temperature must be > 0 (got {self.initial})")
        if not (math.isfinite(self.floor) and self.floor > 0):
            raise ConfigError(f"floor temperature must be > 0 (got {self.floor})")
        if self.floor > self.initial:
            raise ConfigError(f"floor ({self.floor}) must not exceed initial ({self.initial})")
        if not (0.0 < self.alpha < 1.0):
            raise ConfigError(f"alpha must be in (0,1) (got {self.alpha})")

    def initial_temperature(self) -> float:
        return float(self.initial)

    def next_temperature(self, state: Any) -> float:
        return max(float(state.temperature) * self.alpha, self.floor)


SCHEDULE_REGISTRY: Dict[str, Type[CoolingSchedule]] = {
    "geometric": GeometricCoolingSchedule,
}


def make_schedule(schedule_cfg: Dict[str, Any]) -> CoolingSchedule:
    params = dict(schedule_cfg)
    kind = str(params.pop("kind", "geometric"))
    cls = SCHEDULE_REGISTRY.get(kind)
    if cls is None:
        raise ConfigError(f"Unknown cooling schedule: {kind}. Available: {sorted(SCHEDULE_REGISTRY)}")
    try:
        return cls(**{k: float(v) for k, v in params.items()})
    except (TypeError, ValueError) as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"Invalid parameters for schedule '{kind}': {params}") from e
