"""Lidar point layouts and their conversion to one common form."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Mapping

from .messages import PointCloud


class SensorType(Enum):
    """The lidar families whose point layouts are understood."""

    VELODYNE = "velodyne"
    OUSTER = "ouster"
    LIVOX = "livox"
    ROBOSENSE = "robosense"
    MULRAN = "mulran"


def _sensor_type(sensor: Any) -> SensorType:
    try:
        return SensorType(sensor.lower() if isinstance(sensor, str) else sensor)
    except ValueError:
        raise ValueError(f"unknown sensor type: {sensor!r}") from None


def _common(src: Mapping[str, float], time: float) -> dict[str, float]:
    return {
        "x": float(src.get("x", 0.0)),
        "y": float(src.get("y", 0.0)),
        "z": float(src.get("z", 0.0)),
        "intensity": float(src.get("intensity", 0.0)),
        "ring": int(src.get("ring", 0)),
        "time": float(time),
    }


def normalize_points(sensor: Any, cloud: PointCloud | Iterable[Mapping[str, float]],
                     mulran_relative: bool = False) -> list[dict[str, float]]:
    """Convert points to x, y, z, intensity, ring and a relative time in seconds.

    Ouster times are nanoseconds; Robosense times are absolute and taken
    relative to the first point. Mulran times are used as they are unless
    ``mulran_relative`` is set, in which case they are microseconds taken
    relative to the earliest point.
    """
    kind = _sensor_type(sensor)
    points = list(cloud.points if isinstance(cloud, PointCloud) else cloud)
    if not points:
        return []

    if kind in (SensorType.VELODYNE, SensorType.LIVOX):
        return [_common(p, p.get("time", 0.0)) for p in points]
    if kind is SensorType.OUSTER:
        return [_common(p, p.get("t", 0) * 1e-9) for p in points]
    if kind is SensorType.ROBOSENSE:
        start = float(points[0].get("timestamp", 0.0))
        return [_common(p, float(p.get("timestamp", 0.0)) - start) for p in points]
    if mulran_relative:
        earliest = min(float(p.get("t", 0)) for p in points)
        return [_common(p, (float(p.get("t", 0)) - earliest) * 1e-6) for p in points]
    return [_common(p, float(p.get("t", 0))) for p in points]