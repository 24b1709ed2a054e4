"""Neighborhood moves for the annealer.

Contract:
- A move mutates the tour passed to `propose` in place and nothing else.
- Positions come from the run's `MoveService`, uniform on [1, n-1]. Position
  0 is never sampled, so the first city of a tour never moves.
- The result is always a permutation of the input.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Type

import numpy as np

from ..config import ConfigError


class MoveService:
    """Random source shared by the moves (and the optimizer) for one run."""

    def __init__(self, num_cities: int, rng: Optional[np.random.Generator] = None):
        if num_cities < 2:
            raise ConfigError(f"MoveService needs at least 2 cities (got {num_cities})")
        self.num_cities = int(num_cities)
        self.rng = rng if rng is not None else np.random.default_rng()

    def sample(self) -> int:
        """Uniform position in [1, n-1]."""
        return int(self.rng.integers(1, self.num_cities))

    def choice(self, k: int) -> int:
        """Uniform index in [0, k)."""
        return int(self.rng.integers(0, k))

    def uniform(self) -> float:
        """Uniform draw in [0, 1)."""
        return float(self.rng.random())


class Move(ABC):
    name = "move"

    @abstractmethod
    def propose(self, tour: List[int], service: MoveService) -> None:
        """Turn `tour` into a random neighbor, in place."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ChainReverseMove(Move):
    """Reverse the chain between two sampled positions."""

    name = "reverse"

    def propose(self, tour: List[int], service: MoveService) -> None:
        a, b = service.sample(), service.sample()
        lo, hi = min(a, b), max(a, b)
        tour[lo:hi] = tour[lo:hi][::-1]


class SwapCityMove(Move):
    """Exchange two cities."""

    name = "swap"

    def propose(self, tour: List[int], service: MoveService) -> None:
        a, b = service.sample(), service.sample()
        tour[a], tour[b] = tour[b], tour[a]


class RotateCityMove(Move):
    """Left-rotate tour[p0:p2] so that tour[p1] becomes its first element."""

    name = "rotate"

    def propose(self, tour: List[int], service: MoveService) -> None:
        p0, p1, p2 = sorted((service.sample(), service.sample(), service.sample()))
        tour[p0:p2] = tour[p1:p2] + tour[p0:p1]


MOVE_REGISTRY: Dict[str, Type[Move]] = {
    ChainReverseMove.name: ChainReverseMove,
    SwapCityMove.name: SwapCityMove,
    RotateCityMove.name: RotateCityMove,
}


def make_move(name: str) -> Move:
    try:
        return MOVE_REGISTRY[name]()
    except KeyError as e:
        raise ConfigError(f"Unknown move: {name}. Available: {sorted(MOVE_REGISTRY)}") from e
