"""Simulated annealing optimizer for the TSP.

Flow:
1) Initial tour: identity permutation, positions 1..n-1 shuffled.
2) For each outer step, ask the cooling schedule for the next temperature.
3) For each inner step, perturb a copy of the current tour with a uniformly
   chosen move, then apply the Metropolis rule.
4) Every `notification_cycle` steps, push a snapshot to the observers.
5) Push one terminal snapshot (carrying the best tour) and return it.

The best tour is tracked over all proposals, accepted or not.
"""

from __future__ import annotations

import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..config import ConfigError
from .moves import Move, MoveService
from .schedule import CoolingSchedule

logger = logging.getLogger(__name__)


class MoveContractError(AssertionError):
    """Raised when a move returns something other than a permutation of its input."""


@dataclass(frozen=True)
class AnnealSnapshot:
    """Read-only view of the search state handed to observers and schedules."""

    temperature: float
    outer: int
    inner: int
    iteration: int
    tour: Tuple[int, ...]
    energy: float
    best_tour: Tuple[int, ...]
    best_energy: float
    initial_energy: float
    terminated: bool


@dataclass
class SearchState:
    tour: List[int]
    energy: float
    best_tour: List[int]
    best_energy: float
    initial_energy: float = 0.0
    temperature: float = 0.0
    outer: int = 0
    inner: int = 0
    iteration: int = 0
    terminated: bool = False

    def snapshot(self) -> AnnealSnapshot:
        return AnnealSnapshot(
            temperature=float(self.temperature),
            outer=int(self.outer),
            inner=int(self.inner),
            iteration=int(self.iteration),
            tour=tuple(self.tour),
            energy=float(self.energy),
            best_tour=tuple(self.best_tour),
            best_energy=float(self.best_energy),
            initial_energy=float(self.initial_energy),
            terminated=bool(self.terminated),
        )


class Observer(ABC):
    """Receives progress snapshots; called synchronously from the run loop.

    Setting `stop_requested` to a truthy value ends the run early; the
    terminal snapshot is still delivered.
    """

    stop_requested = False

    @abstractmethod
    def notify(self, instance, snapshot: AnnealSnapshot) -> None:
        """Consume one progress snapshot."""


def accept_proposal(delta: float, temperature: float, u: float) -> bool:
    """Metropolis criterion.

    Downhill (or flat) proposals are always accepted. Uphill proposals are
    accepted iff u <= exp(-delta / temperature); with a non-positive or
    non-finite temperature they are never accepted.
    """
    if delta <= 0:
        return True
    if not (math.isfinite(temperature) and temperature > 0):
        return False
    return u <= math.exp(-delta / temperature)


def _check_permutation(before: Sequence[int], after: Sequence[int], move: Move) -> None:
    if len(after) != len(before) or sorted(after) != sorted(before):
        raise MoveContractError(f"{move!r} did not return a permutation of its input: {list(after)}")


@dataclass
class Optimizer:
    """Annealing driver.

    Moves and observers are registered before `optimize`; the optimizer only
    references them. Each `optimize` call builds its own state and random
    source, so calls are independent.
    """

    schedule: Optional[CoolingSchedule] = None
    outer_loops: int = 100
    inner_loops: int = 1000
    notification_cycle: int = 250
    seed: Optional[int] = None
    check_moves: bool = False
    moves: List[Move] = field(default_factory=list)
    observers: List[Observer] = field(default_factory=list)

    def add_move(self, move: Move) -> None:
        self.moves.append(move)

    def add_observer(self, observer: Observer) -> None:
        self.observers.append(observer)

    def _validate(self, n: int) -> None:
        if n <= 0:
            raise ConfigError("Instance has no cities")
        if not self.moves:
            raise ConfigError("At least one move must be registered")
        if self.schedule is None:
            raise ConfigError("No cooling schedule configured")
        for key in ("outer_loops", "inner_loops", "notification_cycle"):
            value = getattr(self, key)
            if int(value) <= 0:
                raise ConfigError(f"{key} must be > 0 (got {value})")

    def _notify(self, instance, state: SearchState) -> bool:
        snap = state.snapshot()
        stop = False
        for obs in self.observers:
            obs.notify(instance, snap)
            stop = stop or bool(getattr(obs, "stop_requested", False))
        return stop

    def optimize(self, instance, rng: Optional[np.random.Generator] = None) -> List[int]:
        """Run the annealer on `instance` and return the best tour found."""
        n = len(instance.cities)
        self._validate(n)
        rng = rng if rng is not None else np.random.default_rng(self.seed)

        t0 = time.time()
        temperature = float(self.schedule.initial_temperature())
        if not (math.isfinite(temperature) and temperature > 0):
            raise ConfigError(f"Initial temperature must be > 0 (got {temperature})")

        tour = list(range(n))
        if n > 2:
            tail = tour[1:]
            rng.shuffle(tail)
            tour[1:] = tail
        energy = instance.tour_length(tour)
        state = SearchState(
            tour=tour,
            energy=energy,
            best_tour=list(tour),
            best_energy=energy,
            initial_energy=energy,
            temperature=temperature,
        )
        logger.info(
            "anneal start: n=%d, moves=%d, outer=%d, inner=%d, T0=%.4g, energy=%.4f",
            n,
            len(self.moves),
            self.outer_loops,
            self.inner_loops,
            temperature,
            energy,
        )

        # a single city has no neighbors to sample
        if n > 1:
            self._run_chain(instance, state, MoveService(n, rng))

        state.terminated = True
        state.tour = list(state.best_tour)
        state.energy = state.best_energy
        self._notify(instance, state)

        logger.info(
            "anneal done: best_energy=%.4f, iterations=%d, runtime=%.2fs",
            state.best_energy,
            state.iteration,
            time.time() - t0,
        )
        return list(state.best_tour)

    def _run_chain(self, instance, state: SearchState, service: MoveService) -> None:
        moves = self.moves
        cycle = int(self.notification_cycle)
        warned = False

        for outer in range(int(self.outer_loops)):
            state.outer = outer
            state.inner = 0
            state.temperature = float(self.schedule.next_temperature(state.snapshot()))
            if not warned and not (math.isfinite(state.temperature) and state.temperature > 0):
                logger.warning(
                    "schedule returned temperature %r at outer=%d; uphill moves are rejected",
                    state.temperature,
                    outer,
                )
                warned = True

            for inner in range(int(self.inner_loops)):
                state.inner = inner
                proposal = list(state.tour)
                move = moves[service.choice(len(moves))]
                move.propose(proposal, service)
                if self.check_moves:
                    _check_permutation(state.tour, proposal, move)

                proposal_energy = instance.tour_length(proposal)
                delta = proposal_energy - state.energy
                u = service.uniform() if delta > 0 else 0.0
                if accept_proposal(delta, state.temperature, u):
                    state.tour = proposal
                    state.energy = proposal_energy

                if proposal_energy < state.best_energy:
                    state.best_tour = list(proposal)
                    state.best_energy = proposal_energy

                state.iteration += 1
                if state.iteration % cycle == 0 and self._notify(instance, state):
                    logger.info("stop requested by observer at outer=%d, inner=%d", outer, inner)
                    return
