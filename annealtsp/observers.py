"""Observers that consume annealing progress snapshots.

- LoggingObserver: textual status line per notification.
- HistoryObserver: keeps every snapshot as a row (pandas for the artifact).
- IterationLimitObserver: asks the optimizer to stop after N notifications.
- render_tour_html: static drawing of a tour (no extra Python deps).
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from .annealing.optimizer import AnnealSnapshot, Observer
from .config import ConfigError

HISTORY_COLUMNS = [
    "iteration",
    "outer",
    "inner",
    "temperature",
    "energy",
    "best_energy",
    "initial_energy",
    "terminated",
]


class LoggingObserver(Observer):
    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.logger = logger or logging.getLogger(__name__)
        self.level = level

    def notify(self, instance, snapshot: AnnealSnapshot) -> None:
        tag = "final" if snapshot.terminated else "step"
        self.logger.log(
            self.level,
            "[%s] temp=%.4g outer=%d inner=%d energy=%.4f best=%.4f",
            tag,
            snapshot.temperature,
            snapshot.outer,
            snapshot.inner,
            snapshot.energy,
            snapshot.best_energy,
        )


class HistoryObserver(Observer):
    def __init__(self):
        self.rows: List[dict] = []

    def notify(self, instance, snapshot: AnnealSnapshot) -> None:
        self.rows.append({c: getattr(snapshot, c) for c in HISTORY_COLUMNS})

    def to_frame(self) -> pd.DataFrame:
        if not self.rows:
            return pd.DataFrame(columns=HISTORY_COLUMNS)
        return pd.DataFrame(self.rows, columns=HISTORY_COLUMNS)


class IterationLimitObserver(Observer):
    """Requests a stop once `max_notifications` snapshots have been seen."""

    def __init__(self, max_notifications: int):
        if max_notifications <= 0:
            raise ConfigError(f"max_notifications must be > 0 (got {max_notifications})")
        self.max_notifications = int(max_notifications)
        self.seen = 0
        self.stop_requested = False

    def notify(self, instance, snapshot: AnnealSnapshot) -> None:
        self.seen += 1
        if self.seen >= self.max_notifications:
            self.stop_requested = True


def _fit_to_canvas(
    cities: Sequence[Tuple[float, float]], size: int, margin: int
) -> List[Tuple[float, float]]:
    xs = [c[0] for c in cities]
    ys = [c[1] for c in cities]
    min_x, min_y = min(xs), min(ys)
    span = max(max(xs) - min_x, max(ys) - min_y) or 1.0
    scale = (size - 2 * margin) / span
    return [((x - min_x) * scale + margin, (y - min_y) * scale + margin) for x, y in cities]


def render_tour_svg(
    cities: Sequence[Tuple[float, float]],
    tour: Sequence[int],
    *,
    size: int = 750,
    margin: int = 10,
) -> str:
    if not cities:
        return f'<svg xmlns="http://www.w3.org/2000/svg" width="{size}" height="{size}"></svg>'

    pts = _fit_to_canvas(cities, size, margin)
    path = " ".join(f"{pts[i][0]:.2f},{pts[i][1]:.2f}" for i in tour)
    dots = "\n".join(
        f'  <circle cx="{x:.2f}" cy="{y:.2f}" r="3" fill="#c8c8c8" />' for x, y in pts
    )
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{size}" height="{size}" '
        f'style="background:#000">\n'
        f'  <polygon points="{path}" fill="none" stroke="#ff00ff" stroke-width="2" />\n'
        f"{dots}\n"
        f"</svg>"
    )


def render_tour_html(
    cities: Sequence[Tuple[float, float]],
    tour: Sequence[int],
    *,
    title: str = "annealtsp tour",
    energy: Optional[float] = None,
) -> str:
    status = "" if energy is None else f"<div>best energy = <code>{energy:.4f}</code></div>"
    return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{title}</title>
    <style>
      body {{ background: #111; color: #eee; font: 13px/1.4 system-ui; margin: 20px; }}
    </style>
  </head>
  <body>
    <div><strong>{title}</strong></div>
    <div>cities: <code>{len(cities)}</code></div>
    {status}
    {render_tour_svg(cities, tour)}
  </body>
</html>"""
