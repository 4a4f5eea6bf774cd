"""Scan-to-map registration of planar features by Gauss-Newton steps."""

from __future__ import annotations

import logging
import math
from typing import Any, Sequence

import numpy as np
from scipy.spatial import cKDTree

from .messages import CloudInfo
from .transforms import quaternion_to_rpy, rpy_to_quaternion, transform_to_affine

logger = logging.getLogger(__name__)

Quaternion = tuple[float, float, float, float]

_NEIGHBOURS = 5
_MAX_NEIGHBOUR_SQ_DIST = 1.0
_PLANE_TOLERANCE = 0.2
_MIN_WEIGHT = 0.1
_MIN_SELECTED = 50
_EIGEN_THRESHOLD = 100.0
_CONVERGED_ROTATION_DEG = 0.05
_CONVERGED_TRANSLATION_CM = 0.05
_MAX_IMU_PITCH = 1.4


def constrain(value: float, limit: float) -> float:
    """Clamp ``value`` into ``[-limit, limit]``."""
    if value < -limit:
        value = -limit
    if value > limit:
        value = limit
    return value


def fit_plane(neighbors: Any) -> tuple[float, float, float, float] | None:
    """Fit ``a*x + b*y + c*z + d = 0`` with a unit normal to the given points.

    Returns ``(a, b, c, d)``, or ``None`` when any point lies further than
    0.2 from the fitted plane or no plane can be fitted.
    """
    pts = np.asarray(neighbors, dtype=float)
    if pts.ndim != 2 or pts.shape[1] < 3 or len(pts) < 3:
        raise ValueError(f"need at least three points of three coordinates, got {pts.shape}")
    a = pts[:, :3]
    b = -np.ones(len(pts))
    solution, *_ = np.linalg.lstsq(a, b, rcond=None)
    norm = float(np.linalg.norm(solution))
    if norm == 0.0 or not math.isfinite(norm):
        return None
    pa, pb, pc = (float(v) / norm for v in solution)
    pd = 1.0 / norm
    distances = np.abs(a @ np.array([pa, pb, pc]) + pd)
    if np.any(distances > _PLANE_TOLERANCE):
        return None
    return pa, pb, pc, pd


def slerp(q1: Sequence[float], q2: Sequence[float], t: float) -> Quaternion:
    """Spherical interpolation of quaternions ``(x, y, z, w)`` along the short arc."""
    a = np.asarray(q1, dtype=float)
    b = np.asarray(q2, dtype=float)
    if a.shape != (4,) or b.shape != (4,):
        raise ValueError("quaternions need four components")
    dot = float(a @ b)
    scale = math.sqrt(float(a @ a) * float(b @ b))
    if scale == 0.0:
        raise ValueError("zero quaternion cannot be interpolated")
    theta = math.acos(max(-1.0, min(1.0, abs(dot) / scale)))
    if theta == 0.0:
        return tuple(float(v) for v in a)
    d = 1.0 / math.sin(theta)
    s0 = math.sin((1.0 - t) * theta)
    s1 = math.sin(t * theta)
    if dot < 0:
        b = -b
    return tuple(float(v) for v in (a * s0 + b * s1) * d)


def blend_roll_pitch(roll: float, pitch: float, imu_roll: float, imu_pitch: float,
                     weight: float) -> tuple[float, float]:
    """Pull roll and pitch towards the IMU's, each by spherical interpolation."""
    blended = slerp(rpy_to_quaternion(roll, 0.0, 0.0), rpy_to_quaternion(imu_roll, 0.0, 0.0), weight)
    new_roll = quaternion_to_rpy(blended)[0]
    blended = slerp(rpy_to_quaternion(0.0, pitch, 0.0), rpy_to_quaternion(0.0, imu_pitch, 0.0), weight)
    new_pitch = quaternion_to_rpy(blended)[1]
    return new_roll, new_pitch


def _cloud(points: Any) -> np.ndarray:
    cloud = np.asarray(points, dtype=float)
    if cloud.size == 0:
        return np.zeros((0, 4))
    if cloud.ndim == 1:
        cloud = cloud.reshape(1, -1)
    if cloud.ndim != 2 or cloud.shape[1] < 3:
        raise ValueError(f"points must have shape (N, >=3), got {cloud.shape}")
    if cloud.shape[1] == 3:
        cloud = np.hstack([cloud, np.zeros((len(cloud), 1))])
    return cloud[:, :4]


def _transform(values: Sequence[float]) -> list[float]:
    result = [float(v) for v in values]
    if len(result) != 6:
        raise ValueError(f"a transform holds roll, pitch, yaw, x, y, z; got {len(result)} values")
    return result


class ScanMatcher:
    """Registers a scan of planar points against a local map.

    Transforms are ``[roll, pitch, yaw, x, y, z]``.
    """

    def __init__(self, imu_type: bool = True, imu_rpy_weight: float = 0.01,
                 rotation_tolerance: float = 1000.0, z_tolerance: float = 1000.0,
                 max_iterations: int = 30, min_features: int = 30) -> None:
        self.imu_type = imu_type
        self.imu_rpy_weight = imu_rpy_weight
        self.rotation_tolerance = rotation_tolerance
        self.z_tolerance = z_tolerance
        self.max_iterations = max_iterations
        self.min_features = min_features
        self.is_degenerate = False
        self.mat_p = np.zeros((6, 6))
        self.last_match_ok = False

    def surf_optimization(self, scan: Any, local_map: Any,
                          transform: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
        """Pair scan points with local planes of the map.

        Returns the selected scan points and, for each, the weighted plane
        normal with the weighted point-to-plane distance in the fourth column.
        """
        points = _cloud(scan)
        cloud_map = _cloud(local_map)
        empty = np.zeros((0, 4))
        if len(points) == 0 or len(cloud_map) < _NEIGHBOURS:
            return empty, empty.copy()

        affine = transform_to_affine(_transform(transform))
        selected = points[:, :3] @ affine[:3, :3].T + affine[:3, 3]
        distances, indices = cKDTree(cloud_map[:, :3]).query(selected, k=_NEIGHBOURS)
        sq_dist = np.square(distances)

        kept_points: list[np.ndarray] = []
        kept_coeffs: list[tuple[float, float, float, float]] = []
        for original, moved, sq, idx in zip(points, selected, sq_dist, indices):
            if not sq[-1] < _MAX_NEIGHBOUR_SQ_DIST:
                continue
            plane = fit_plane(cloud_map[idx, :3])
            if plane is None:
                continue
            pa, pb, pc, pd = plane
            pd2 = pa * moved[0] + pb * moved[1] + pc * moved[2] + pd
            point_range = math.sqrt(float(original[:3] @ original[:3]))
            if point_range == 0.0:
                continue
            s = 1.0 - 0.9 * abs(pd2) / math.sqrt(point_range)
            if s > _MIN_WEIGHT:
                kept_points.append(original)
                kept_coeffs.append((s * pa, s * pb, s * pc, s * pd2))

        if not kept_points:
            return empty, empty.copy()
        return np.array(kept_points), np.array(kept_coeffs)

    def lm_step(self, points: Any, coeffs: Any, transform: Sequence[float],
                iteration: int) -> tuple[list[float], bool]:
        """One linearised update; returns the new transform and whether it converged."""
        current = _transform(transform)
        pts = _cloud(points)
        cof = _cloud(coeffs)
        if len(pts) != len(cof):
            raise ValueError("points and coefficients differ in length")
        if len(pts) < _MIN_SELECTED:
            return current, False

        srx, crx = math.sin(current[2]), math.cos(current[2])
        sry, cry = math.sin(current[1]), math.cos(current[1])
        srz, crz = math.sin(current[0]), math.cos(current[0])
        px, py, pz = pts[:, 0], pts[:, 1], pts[:, 2]
        cx, cy, cz, ci = cof[:, 0], cof[:, 1], cof[:, 2], cof[:, 3]

        arx = ((-srx * cry * px - (srx * sry * srz + crx * crz) * py
                + (crx * srz - srx * sry * crz) * pz) * cx
               + (crx * cry * px - (srx * crz - crx * sry * srz) * py
                  + (crx * sry * crz + srx * srz) * pz) * cy)
        ary = ((-crx * sry * px + crx * cry * srz * py + crx * cry * crz * pz) * cx
               + (-srx * sry * px + srx * sry * srz * py + srx * cry * crz * pz) * cy
               + (-cry * px - sry * srz * py - sry * crz * pz) * cz)
        arz = (((crx * sry * crz + srx * srz) * py + (srx * crz - crx * sry * srz) * pz) * cx
               + ((-crx * srz + srx * sry * crz) * py + (-srx * sry * srz - crx * crz) * pz) * cy
               + (cry * crz * py - cry * srz * pz) * cz)

        mat_a = np.column_stack([arz, ary, arx, cx, cy, cz])
        mat_b = -ci
        ata = mat_a.T @ mat_a
        atb = mat_a.T @ mat_b
        step, *_ = np.linalg.lstsq(ata, atb, rcond=None)

        if iteration == 0:
            values, vectors = np.linalg.eigh(ata)
            values = values[::-1]
            rows = vectors[:, ::-1].T
            reduced = rows.copy()
            self.is_degenerate = False
            for i in range(5, -1, -1):
                if values[i] < _EIGEN_THRESHOLD:
                    reduced[i, :] = 0.0
                    self.is_degenerate = True
                else:
                    break
            self.mat_p = np.linalg.inv(rows) @ reduced

        if self.is_degenerate:
            step = self.mat_p @ step

        updated = [value + float(delta) for value, delta in zip(current, step)]
        delta_r = math.sqrt(float(np.sum(np.degrees(step[:3]) ** 2)))
        delta_t = math.sqrt(float(np.sum((step[3:] * 100.0) ** 2)))
        converged = delta_r < _CONVERGED_ROTATION_DEG and delta_t < _CONVERGED_TRANSLATION_CM
        return updated, converged

    def match(self, scan: Any, local_map: Any, transform: Sequence[float]) -> list[float]:
        """Iterate plane association and updates; returns the refined transform.

        With too few scan points the transform comes back unchanged and
        ``last_match_ok`` is false.
        """
        current = _transform(transform)
        points = _cloud(scan)
        if len(points) <= self.min_features:
            logger.warning("Not enough features! Only %d planar features available.", len(points))
            self.last_match_ok = False
            return current
        for iteration in range(self.max_iterations):
            selected, coeffs = self.surf_optimization(points, local_map, current)
            current, converged = self.lm_step(selected, coeffs, current, iteration)
            if converged:
                break
        self.last_match_ok = True
        return current

    def transform_update(self, transform: Sequence[float], cloud_info: CloudInfo) -> list[float]:
        """Blend roll and pitch with the IMU, then clamp roll, pitch and z."""
        current = _transform(transform)
        if cloud_info.imu_available and self.imu_type and abs(cloud_info.imu_pitch_init) < _MAX_IMU_PITCH:
            current[0], current[1] = blend_roll_pitch(
                current[0], current[1], cloud_info.imu_roll_init, cloud_info.imu_pitch_init,
                self.imu_rpy_weight)
        current[0] = constrain(current[0], self.rotation_tolerance)
        current[1] = constrain(current[1], self.rotation_tolerance)
        current[5] = constrain(current[5], self.z_tolerance)
        return current