"""Append-only per-vehicle position history."""

from __future__ import annotations

Position = tuple[float, float]
Path = tuple[Position, ...]


def accumulate_path(existing: Path | None, position: Position, *, max_points: int | None = None) -> Path:
    """Append *position* to *existing* and return the new path.

    Runs on every accepted reconciliation, frozen vehicles included, so a
    frozen vehicle accumulates repeated identical points. Points are never
    deduplicated or reordered. ``max_points`` (opt-in) keeps only the newest
    entries.
    """
    if max_points is not None and max_points < 1:
        raise ValueError("max_points must be at least 1")
    point = (float(position[0]), float(position[1]))
    path: Path = (point,) if not existing else (*existing, point)
    if max_points is not None and len(path) > max_points:
        path = path[-max_points:]
    return path
