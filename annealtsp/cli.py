from __future__ import annotations

import argparse
import logging
import os
import re
from copy import deepcopy
from pathlib import Path
from typing import Any, List

import pandas as pd

from .config import deep_set, load_experiment_spec, load_yaml, merge_dicts, now_tag, save_yaml
from .logging_utils import setup_logger
from .pipeline import run as run_pipeline


LEADERBOARD_KEY_COLS = [
    "variant",
    "param_path",
    "param_value",
    "n_cities",
    "initial_energy",
    "best_energy",
    "improvement_ratio",
    "iterations",
    "runtime_total_sec",
]


def _slug(s: str) -> str:
    s = s.strip().lower()
    s = re.sub(r"[^a-z0-9_\-]+", "_", s)
    s = re.sub(r"_+", "_", s).strip("_")
    return s or "x"


def _fmt_variant_id(v: Any) -> str:
    if v is None:
        return "v_none"
    if isinstance(v, bool):
        return f"v_{str(v).lower()}"
    if isinstance(v, int):
        return f"v_{v:d}"
    if isinstance(v, float):
        return f"v_{v!r}"
    return f"v_{_slug(str(v))}"


def main(argv: List[str] | None = None) -> None:
    p = argparse.ArgumentParser(prog="annealtsp-run", description="Solve TSP instances by simulated annealing")
    p.add_argument("--base", action="append", default=None, help="Base YAML config (repeatable)")
    p.add_argument("--instance", default=None, help="TSPLIB file; overrides the instance section")
    p.add_argument("--sweep", default=None, help="Sweep YAML (exp_name, param_path, values)")
    p.add_argument("--out-root", default=None)
    p.add_argument("--exp-tag", default=None)
    p.add_argument("--seed", type=int, default=None, help="Annealing seed override")
    p.add_argument("-v", "--verbose", action="store_true")
    args = p.parse_args(argv)

    base_merged: dict = {}
    for b in args.base or ["configs/base.yaml"]:
        base_merged = merge_dicts(base_merged, load_yaml(b))

    cfg0 = base_merged
    if args.instance:
        cfg0 = merge_dicts(cfg0, {"instance": {"source": "tsplib", "path": args.instance}})
    if args.seed is not None:
        deep_set(cfg0, "anneal.seed", args.seed)

    run_root = args.out_root or cfg0.get("paths", {}).get("run_root", "runs")
    sweep = load_experiment_spec(args.sweep) if args.sweep else None
    exp_name = sweep.exp_name if sweep else "single"
    exp_tag = args.exp_tag or f"{exp_name}_{now_tag()}"
    exp_dir = os.path.join(run_root, exp_tag)
    os.makedirs(exp_dir, exist_ok=True)

    logger = setup_logger(
        "annealtsp",
        Path(exp_dir) / "run.log",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    if sweep is None:
        save_yaml(cfg0, os.path.join(exp_dir, "config_resolved.yaml"))
        kpis = run_pipeline(cfg0, exp_dir)
        logger.info("best_energy=%.4f (initial %.4f)", kpis["best_energy"], kpis["initial_energy"])
        logger.info("[DONE] artifacts in %s", exp_dir)
        return

    rows = []
    used_ids: set = set()
    for v in sweep.values:
        cfg = deepcopy(cfg0)
        deep_set(cfg, sweep.param_path, v)

        var_id = _fmt_variant_id(v)
        # slugged strings can still collide
        if var_id in used_ids:
            var_id = f"{var_id}_{len(used_ids):02d}"
        used_ids.add(var_id)
        out_dir = os.path.join(exp_dir, var_id)
        os.makedirs(out_dir, exist_ok=True)

        save_yaml(cfg, os.path.join(out_dir, "config_resolved.yaml"))

        logger.info("variant %s: %s=%r", var_id, sweep.param_path, v)
        kpis = run_pipeline(cfg, out_dir)
        kpis["variant"] = var_id
        kpis["param_path"] = sweep.param_path
        kpis["param_value"] = "" if v is None else str(v)
        rows.append(kpis)

    lb = pd.DataFrame(rows)

    for c in LEADERBOARD_KEY_COLS:
        if c not in lb.columns:
            lb[c] = None
    lb = lb[LEADERBOARD_KEY_COLS + [c for c in lb.columns if c not in LEADERBOARD_KEY_COLS]]

    lb.to_csv(os.path.join(exp_dir, "leaderboard.csv"), index=False, encoding="utf-8-sig")
    logger.info("[DONE] %s", os.path.join(exp_dir, "leaderboard.csv"))


if __name__ == "__main__":
    main()
