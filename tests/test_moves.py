import numpy as np
import pytest

from annealtsp.annealing.moves import (
    MOVE_REGISTRY,
    ChainReverseMove,
    MoveService,
    RotateCityMove,
    SwapCityMove,
    make_move,
)
from annealtsp.config import ConfigError


class ScriptedService:
    """Returns pre-set positions instead of random ones."""

    def __init__(self, positions):
        self.positions = list(positions)

    def sample(self) -> int:
        return self.positions.pop(0)


def _apply(move, tour, positions):
    out = list(tour)
    move.propose(out, ScriptedService(positions))
    return out


BASE = [0, 1, 2, 3, 4, 5]


def test_reverse_segment_order_independent():
    assert _apply(ChainReverseMove(), BASE, [1, 4]) == [0, 3, 2, 1, 4, 5]
    assert _apply(ChainReverseMove(), BASE, [4, 1]) == [0, 3, 2, 1, 4, 5]


def test_reverse_coincident_is_noop():
    assert _apply(ChainReverseMove(), BASE, [3, 3]) == BASE


def test_swap():
    assert _apply(SwapCityMove(), BASE, [1, 5]) == [0, 5, 2, 3, 4, 1]
    assert _apply(SwapCityMove(), BASE, [2, 2]) == BASE


def test_rotate_left():
    # sorted positions (1, 3, 5): tour[3] becomes the start of tour[1:5]
    assert _apply(RotateCityMove(), BASE, [5, 1, 3]) == [0, 3, 4, 1, 2, 5]


@pytest.mark.parametrize(
    "positions",
    [[2, 2, 2], [1, 1, 4], [1, 4, 4], [5, 5, 5]],
)
def test_rotate_coincident_positions_identity(positions):
    assert _apply(RotateCityMove(), BASE, positions) == BASE


def test_rotate_coincident_start_and_pivot():
    # p0 == p1 < p2 and p0 < p1 == p2 both leave the range untouched
    assert _apply(RotateCityMove(), BASE, [2, 2, 5]) == BASE
    assert _apply(RotateCityMove(), BASE, [1, 3, 3]) == BASE


@pytest.mark.parametrize("n", [2, 3, 4, 7, 20])
def test_moves_keep_permutation_and_first_city(n):
    service = MoveService(n, np.random.default_rng(n))
    for move in (ChainReverseMove(), SwapCityMove(), RotateCityMove()):
        tour = list(range(n))
        for _ in range(300):
            move.propose(tour, service)
            assert len(tour) == n
            assert sorted(tour) == list(range(n))
            assert tour[0] == 0


def test_move_service_sample_range():
    service = MoveService(5, np.random.default_rng(0))
    draws = {service.sample() for _ in range(500)}
    assert draws == {1, 2, 3, 4}

    assert {service.choice(3) for _ in range(200)} == {0, 1, 2}
    u = [service.uniform() for _ in range(200)]
    assert all(0.0 <= x < 1.0 for x in u)


def test_move_service_needs_two_cities():
    with pytest.raises(ConfigError):
        MoveService(1)
    assert MoveService(2, np.random.default_rng(0)).sample() == 1


def test_registry():
    assert set(MOVE_REGISTRY) == {"reverse", "swap", "rotate"}
    assert isinstance(make_move("rotate"), RotateCityMove)
    with pytest.raises(ConfigError):
        make_move("three_opt")
