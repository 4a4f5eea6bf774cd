"""Small helpers shared by the odometry nodes."""

from __future__ import annotations

import math
from typing import Any

_BLUE = "\033[34m"
_RESET = "\033[0m"
PACKAGE_VERSION = "v0.0.0"


def version_banner(mode: str) -> str:
    """Return the coloured start-up banner naming the SLAM mode and version."""
    rule = "*" * 60
    lines = [
        f"{_BLUE}{rule}",
        f"Slam mode       : {mode}",
        f"Package version : {PACKAGE_VERSION}",
        f"{rule}{_RESET}",
    ]
    return "\n".join(lines)


def _xyz(point: Any) -> tuple[float, float, float]:
    if hasattr(point, "x") and hasattr(point, "y") and hasattr(point, "z"):
        return float(point.x), float(point.y), float(point.z)
    values = tuple(point)
    if len(values) < 3:
        raise ValueError(f"a point needs at least three coordinates, got {len(values)}")
    return float(values[0]), float(values[1]), float(values[2])


def point_distance(p: Any, other: Any = None) -> float:
    """Distance of ``p`` from the origin, or from ``other`` when it is given.

    Points may be objects with ``x``, ``y`` and ``z`` attributes or sequences
    whose first three entries are the coordinates.
    """
    x, y, z = _xyz(p)
    if other is not None:
        ox, oy, oz = _xyz(other)
        x, y, z = x - ox, y - oy, z - oz
    return math.sqrt(x * x + y * y + z * z)