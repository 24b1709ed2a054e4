"""TSP problem instances.

Responsibilities
- Hold the city coordinates of one instance.
- Precompute the symmetric Euclidean distance matrix.
- Evaluate cyclic tour lengths for the optimizer.

Notes
- Random instances are reproducible given a seed.
- TSPLIB files are read from `NODE_COORD_SECTION` up to `EOF`.
"""

from __future__ import annotations

import os
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .config import ConfigError

City = Tuple[float, float]

# random instances live on a 1000x1000 plane
RANDOM_PLANE_SIZE = 999.0


class TSPInstance:
    """Cities plus their pairwise distance matrix."""

    def __init__(self, cities: Optional[Iterable[City]] = None):
        self._cities: List[City] = []
        self._distances: Optional[np.ndarray] = None
        for x, y in cities or []:
            self.add_city(x, y)

    @property
    def cities(self) -> List[City]:
        return list(self._cities)

    @property
    def n(self) -> int:
        return len(self._cities)

    def __len__(self) -> int:
        return len(self._cities)

    def add_city(self, x: float, y: float) -> None:
        self._cities.append((float(x), float(y)))
        # matrix is stale once the city set changes
        self._distances = None

    @staticmethod
    def create_random(n: int, seed: Optional[int] = None) -> "TSPInstance":
        if n <= 0:
            raise ConfigError(f"Random instance needs n > 0 (got {n})")
        rng = np.random.default_rng(seed)
        pts = rng.uniform(0.0, RANDOM_PLANE_SIZE, size=(n, 2))
        inst = TSPInstance((float(x), float(y)) for x, y in pts)
        inst.build_distances()
        return inst

    def build_distances(self) -> np.ndarray:
        coords = np.asarray(self._cities, dtype=float).reshape(-1, 2)
        diff = coords[:, None, :] - coords[None, :, :]
        mat = np.sqrt((diff**2).sum(axis=-1))
        # exact symmetry, independent of rounding order
        mat = np.triu(mat, 1)
        self._distances = mat + mat.T
        return self._distances

    @property
    def distances(self) -> np.ndarray:
        if self._distances is None:
            raise ConfigError("Distance matrix not built; call build_distances() first")
        return self._distances

    def distance(self, i: int, j: int) -> float:
        return float(self.distances[i, j])

    def tour_length(self, tour: Sequence[int]) -> float:
        """Cyclic tour length, including the edge back to the first city."""
        idx = np.asarray(tour, dtype=np.intp)
        if idx.size == 0:
            return 0.0
        return float(self.distances[idx, np.roll(idx, -1)].sum())


def parse_tsplib(lines: Iterable[str]) -> List[City]:
    """Parse the coordinate rows of a TSPLIB file.

    Rows before `NODE_COORD_SECTION` are header keys and are ignored; each
    following row is `id x y` until `EOF`.
    """
    cities: List[City] = []
    in_coords = False
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        upper = line.upper()
        if not in_coords:
            if upper.startswith("NODE_COORD_SECTION"):
                in_coords = True
            continue
        if upper.startswith("EOF"):
            break

        parts = line.split()
        if len(parts) < 3:
            raise ConfigError(f"Invalid TSPLIB coordinate row: {line!r}")
        try:
            cities.append((float(parts[1]), float(parts[2])))
        except ValueError as e:
            raise ConfigError(f"Invalid TSPLIB coordinate row: {line!r}") from e

    if not in_coords:
        raise ConfigError("TSPLIB data has no NODE_COORD_SECTION")
    if not cities:
        raise ConfigError("TSPLIB data has no coordinates")
    return cities


def read_tsplib(path: str) -> TSPInstance:
    if not os.path.exists(path):
        raise FileNotFoundError(f"TSPLIB file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        cities = parse_tsplib(f)
    inst = TSPInstance(cities)
    inst.build_distances()
    return inst


def build_instance(cfg: dict) -> TSPInstance:
    """Build an instance from the `instance` config section.

    Supported sources:
        random: `n` points on the plane, seeded by `seed`.
        tsplib: read from `path`.
        inline: explicit `cities` list of [x, y] pairs.
    """
    icfg = cfg.get("instance")
    if not isinstance(icfg, dict):
        raise ConfigError("Missing 'instance' section in config")

    source = str(icfg.get("source", "random"))
    if source == "random":
        try:
            n = int(icfg["n"])
        except KeyError as e:
            raise ConfigError(f"Missing instance config key: {e}") from e
        seed = icfg.get("seed")
        return TSPInstance.create_random(n, None if seed is None else int(seed))

    if source == "tsplib":
        path = icfg.get("path")
        if not path:
            raise ConfigError("instance.path is required for source='tsplib'")
        return read_tsplib(str(path))

    if source == "inline":
        cities = icfg.get("cities")
        if not isinstance(cities, list) or not cities:
            raise ConfigError("instance.cities must be a non-empty list for source='inline'")
        inst = TSPInstance((float(c[0]), float(c[1])) for c in cities)
        inst.build_distances()
        return inst

    raise ConfigError(f"Unknown instance source: {source}")
