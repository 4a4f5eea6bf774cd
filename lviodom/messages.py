"""Plain message types passed between the odometry stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

Vector3 = tuple[float, float, float]
Quaternion = tuple[float, float, float, float]


def _vector(values: Any, size: int, name: str) -> tuple[float, ...]:
    result = tuple(float(v) for v in values)
    if len(result) != size:
        raise ValueError(f"{name} needs {size} values, got {len(result)}")
    return result


@dataclass
class ImuSample:
    """One inertial measurement; ``stamp`` is in seconds."""

    stamp: float
    linear_acceleration: Vector3 = (0.0, 0.0, 0.0)
    angular_velocity: Vector3 = (0.0, 0.0, 0.0)
    orientation: Quaternion = (0.0, 0.0, 0.0, 1.0)

    def __post_init__(self) -> None:
        self.linear_acceleration = _vector(self.linear_acceleration, 3, "linear_acceleration")
        self.angular_velocity = _vector(self.angular_velocity, 3, "angular_velocity")
        self.orientation = _vector(self.orientation, 4, "orientation")


@dataclass
class Odometry:
    """A stamped pose with its 6x6 row-major covariance."""

    stamp: float
    position: Vector3 = (0.0, 0.0, 0.0)
    orientation: Quaternion = (0.0, 0.0, 0.0, 1.0)
    covariance: tuple[float, ...] = (0.0,) * 36
    frame_id: str = ""
    child_frame_id: str = ""

    def __post_init__(self) -> None:
        self.position = _vector(self.position, 3, "position")
        self.orientation = _vector(self.orientation, 4, "orientation")
        self.covariance = _vector(self.covariance, 36, "covariance")


@dataclass
class PointCloud:
    """A stamped cloud of points, each a mapping from field name to value."""

    stamp: float
    points: list[dict[str, float]] = field(default_factory=list)
    fields: tuple[str, ...] = ()
    is_dense: bool = True
    frame_id: str = ""

    def __post_init__(self) -> None:
        self.points = [dict(p) for p in self.points]
        if not self.fields and self.points:
            self.fields = tuple(self.points[0])
        else:
            self.fields = tuple(self.fields)

    def __len__(self) -> int:
        return len(self.points)

    def has_field(self, name: str) -> bool:
        """Whether the cloud carries a field of this name."""
        return name in self.fields


def _empty_cloud() -> np.ndarray:
    return np.zeros((0, 4))


@dataclass
class CloudInfo:
    """A deskewed scan with the IMU and odometry guesses that go with it.

    ``cloud_deskewed`` is an ``(N, 4)`` array of x, y, z and intensity.
    """

    stamp: float = 0.0
    frame_id: str = ""
    imu_available: bool = False
    odom_available: bool = False
    imu_roll_init: float = 0.0
    imu_pitch_init: float = 0.0
    imu_yaw_init: float = 0.0
    odom_x: float = 0.0
    odom_y: float = 0.0
    odom_z: float = 0.0
    odom_roll: float = 0.0
    odom_pitch: float = 0.0
    odom_yaw: float = 0.0
    odom_reset_id: int = 0
    cloud_deskewed: np.ndarray = field(default_factory=_empty_cloud)

    def __post_init__(self) -> None:
        cloud = np.asarray(self.cloud_deskewed, dtype=float)
        if cloud.size == 0:
            cloud = _empty_cloud()
        if cloud.ndim != 2 or cloud.shape[1] != 4:
            raise ValueError(f"cloud_deskewed must have shape (N, 4), got {cloud.shape}")
        self.cloud_deskewed = cloud