"""Run pipeline.

Flow:
1) Build the instance (random / TSPLIB / inline)
2) Wire the optimizer (moves + cooling schedule) from config
3) Anneal
4) Emit artifacts:
   - tour.csv       (visiting order with coordinates)
   - history.csv    (one row per observer notification)
   - metrics.csv
   - tour.html      (optional)

The pipeline is deterministic given `instance.seed` and `anneal.seed`.
"""

from __future__ import annotations

import logging
import os
import time
from typing import List, Optional

import pandas as pd

from .annealing.moves import make_move
from .annealing.optimizer import Optimizer
from .annealing.schedule import make_schedule
from .config import AnnealConfig
from .instance import TSPInstance, build_instance
from .observers import HistoryObserver, LoggingObserver, render_tour_html

logger = logging.getLogger(__name__)


def build_optimizer(cfg: dict) -> Optimizer:
    acfg = AnnealConfig.from_cfg(cfg)
    opt = Optimizer(
        schedule=make_schedule(acfg.schedule),
        outer_loops=acfg.outer_loops,
        inner_loops=acfg.inner_loops,
        notification_cycle=acfg.notification_cycle,
        seed=acfg.seed,
    )
    for name in acfg.moves:
        opt.add_move(make_move(name))
    return opt


def _tour_frame(instance: TSPInstance, tour: List[int]) -> pd.DataFrame:
    cities = instance.cities
    return pd.DataFrame(
        [
            {"order": i, "city": int(c), "x": cities[c][0], "y": cities[c][1]}
            for i, c in enumerate(tour)
        ]
    )


def _save_outputs(
    out_dir: str,
    tour_df: pd.DataFrame,
    history_df: pd.DataFrame,
    kpis: dict,
    *,
    tour_html: Optional[str],
) -> None:
    os.makedirs(out_dir, exist_ok=True)
    tour_df.to_csv(os.path.join(out_dir, "tour.csv"), index=False, encoding="utf-8-sig")
    history_df.to_csv(os.path.join(out_dir, "history.csv"), index=False, encoding="utf-8-sig")
    pd.DataFrame([kpis]).to_csv(os.path.join(out_dir, "metrics.csv"), index=False, encoding="utf-8-sig")

    if tour_html is not None:
        with open(os.path.join(out_dir, "tour.html"), "w", encoding="utf-8") as f:
            f.write(tour_html)


def run(cfg: dict, out_dir: str) -> dict:
    """Run one annealing job and write artifacts."""
    t0 = time.time()
    os.makedirs(out_dir, exist_ok=True)

    instance = build_instance(cfg)
    opt = build_optimizer(cfg)

    out_cfg = cfg.get("outputs", {}) if isinstance(cfg.get("outputs", {}), dict) else {}
    write_tour_html = bool(out_cfg.get("write_tour_html", True))
    log_progress = bool(out_cfg.get("log_progress", True))

    history = HistoryObserver()
    opt.add_observer(history)
    if log_progress:
        opt.add_observer(LoggingObserver(logger))

    best = opt.optimize(instance)
    history_df = history.to_frame()

    best_energy = instance.tour_length(best)
    # the terminal snapshot is always the last row
    initial_energy = float(history_df["initial_energy"].iloc[-1])

    kpis = {
        "n_cities": len(instance),
        "initial_energy": initial_energy,
        "best_energy": float(best_energy),
        "improvement_ratio": (
            float(1.0 - best_energy / initial_energy) if initial_energy > 0 else 0.0
        ),
        "iterations": int(history_df["iteration"].max()),
        "outer_loops": opt.outer_loops,
        "inner_loops": opt.inner_loops,
        "moves": ",".join(m.name for m in opt.moves),
        "runtime_total_sec": float(time.time() - t0),
    }

    html = (
        render_tour_html(instance.cities, best, title=f"annealtsp: {len(instance)} cities", energy=best_energy)
        if write_tour_html
        else None
    )
    _save_outputs(out_dir, _tour_frame(instance, best), history_df, kpis, tour_html=html)
    return kpis
