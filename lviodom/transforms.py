"""Rigid transforms, Euler angles and quaternions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

Quaternion = tuple[float, float, float, float]


@dataclass
class Pose6D:
    """A pose given by translation and roll/pitch/yaw, with index and time."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0
    intensity: float = 0.0
    time: float = 0.0

    def to_affine(self) -> np.ndarray:
        """Homogeneous 4x4 matrix of this pose."""
        return get_transformation(self.x, self.y, self.z, self.roll, self.pitch, self.yaw)


def get_transformation(x: float, y: float, z: float,
                       roll: float, pitch: float, yaw: float) -> np.ndarray:
    """Homogeneous matrix with rotation Rz(yaw) * Ry(pitch) * Rx(roll)."""
    cr, sr = math.cos(roll), math.sin(roll)
    cp, sp = math.cos(pitch), math.sin(pitch)
    cy, sy = math.cos(yaw), math.sin(yaw)
    matrix = np.eye(4)
    matrix[:3, :3] = [
        [cy * cp, cy * sp * sr - sy * cr, cy * sp * cr + sy * sr],
        [sy * cp, sy * sp * sr + cy * cr, sy * sp * cr - cy * sr],
        [-sp, cp * sr, cp * cr],
    ]
    matrix[:3, 3] = [x, y, z]
    return matrix


def translation_and_euler(matrix: np.ndarray) -> tuple[float, float, float, float, float, float]:
    """Split a homogeneous matrix into ``(x, y, z, roll, pitch, yaw)``."""
    m = np.asarray(matrix, dtype=float)
    if m.shape not in ((4, 4), (3, 4)):
        raise ValueError(f"expected a 4x4 or 3x4 matrix, got shape {m.shape}")
    roll = math.atan2(m[2, 1], m[2, 2])
    pitch = math.asin(max(-1.0, min(1.0, -m[2, 0])))
    yaw = math.atan2(m[1, 0], m[0, 0])
    return float(m[0, 3]), float(m[1, 3]), float(m[2, 3]), roll, pitch, yaw


def rpy_to_quaternion(roll: float, pitch: float, yaw: float) -> Quaternion:
    """Quaternion ``(x, y, z, w)`` for fixed-axis roll, pitch and yaw."""
    cr, sr = math.cos(roll / 2), math.sin(roll / 2)
    cp, sp = math.cos(pitch / 2), math.sin(pitch / 2)
    cy, sy = math.cos(yaw / 2), math.sin(yaw / 2)
    return (
        sr * cp * cy - cr * sp * sy,
        cr * sp * cy + sr * cp * sy,
        cr * cp * sy - sr * sp * cy,
        cr * cp * cy + sr * sp * sy,
    )


def _quaternion_matrix(q: Sequence[float]) -> np.ndarray:
    values = tuple(float(v) for v in q)
    if len(values) != 4:
        raise ValueError(f"a quaternion has four components, got {len(values)}")
    x, y, z, w = values
    d = x * x + y * y + z * z + w * w
    if d == 0.0:
        raise ValueError("zero quaternion has no rotation")
    s = 2.0 / d
    xs, ys, zs = x * s, y * s, z * s
    wx, wy, wz = w * xs, w * ys, w * zs
    xx, xy, xz = x * xs, x * ys, x * zs
    yy, yz, zz = y * ys, y * zs, z * zs
    return np.array([
        [1.0 - (yy + zz), xy - wz, xz + wy],
        [xy + wz, 1.0 - (xx + zz), yz - wx],
        [xz - wy, yz + wx, 1.0 - (xx + yy)],
    ])


def quaternion_to_rpy(q: Sequence[float]) -> tuple[float, float, float]:
    """Roll, pitch and yaw of a quaternion ``(x, y, z, w)``; need not be unit."""
    m = _quaternion_matrix(q)
    if abs(m[2, 0]) >= 1.0:
        if m[2, 0] < 0:
            return math.atan2(m[0, 1], m[0, 2]), math.pi / 2, 0.0
        return math.atan2(-m[0, 1], -m[0, 2]), -math.pi / 2, 0.0
    pitch = -math.asin(m[2, 0])
    cp = math.cos(pitch)
    roll = math.atan2(m[2, 1] / cp, m[2, 2] / cp)
    yaw = math.atan2(m[1, 0] / cp, m[0, 0] / cp)
    return roll, pitch, yaw


def rotation_to_quaternion(rotation: np.ndarray) -> Quaternion:
    """Quaternion ``(x, y, z, w)`` of a 3x3 rotation (or the block of a 4x4)."""
    m = np.asarray(rotation, dtype=float)
    if m.shape == (4, 4):
        m = m[:3, :3]
    if m.shape != (3, 3):
        raise ValueError(f"expected a 3x3 rotation, got shape {m.shape}")
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0.0:
        t = math.sqrt(trace + 1.0)
        w = 0.5 * t
        t = 0.5 / t
        return ((m[2, 1] - m[1, 2]) * t, (m[0, 2] - m[2, 0]) * t, (m[1, 0] - m[0, 1]) * t, w)
    i = 0
    if m[1, 1] > m[0, 0]:
        i = 1
    if m[2, 2] > m[i, i]:
        i = 2
    j = (i + 1) % 3
    k = (j + 1) % 3
    t = math.sqrt(m[i, i] - m[j, j] - m[k, k] + 1.0)
    xyz = [0.0, 0.0, 0.0]
    xyz[i] = 0.5 * t
    t = 0.5 / t
    w = (m[k, j] - m[j, k]) * t
    xyz[j] = (m[j, i] + m[i, j]) * t
    xyz[k] = (m[k, i] + m[i, k]) * t
    return xyz[0], xyz[1], xyz[2], w


def _check_transform(transform: Sequence[float]) -> tuple[float, ...]:
    values = tuple(float(v) for v in transform)
    if len(values) != 6:
        raise ValueError(f"a transform holds roll, pitch, yaw, x, y, z; got {len(values)} values")
    return values


def transform_to_affine(transform: Sequence[float]) -> np.ndarray:
    """Matrix of a ``[roll, pitch, yaw, x, y, z]`` transform."""
    roll, pitch, yaw, x, y, z = _check_transform(transform)
    return get_transformation(x, y, z, roll, pitch, yaw)


def transform_to_pose(transform: Sequence[float]) -> Pose6D:
    """Pose of a ``[roll, pitch, yaw, x, y, z]`` transform."""
    roll, pitch, yaw, x, y, z = _check_transform(transform)
    return Pose6D(x=x, y=y, z=z, roll=roll, pitch=pitch, yaw=yaw)