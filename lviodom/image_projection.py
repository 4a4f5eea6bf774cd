"""Motion compensation and range filtering of incoming lidar scans."""

from __future__ import annotations

import logging
import math
import threading
from collections import deque
from typing import Any, Callable, Sequence

import numpy as np

from .common import point_distance
from .messages import CloudInfo, ImuSample, Odometry, PointCloud
from .point_formats import SensorType, normalize_points
from .transforms import get_transformation

logger = logging.getLogger(__name__)

QUEUE_LENGTH = 2000


class CloudFormatError(ValueError):
    """A scan lacks what deskewing needs."""


class ImageProjection:
    """Caches scans, deskews their points and drops those out of range."""

    def __init__(self, sensor: Any = SensorType.VELODYNE, lidar_min_range: float = 1.0,
                 lidar_max_range: float = 1000.0,
                 imu_converter: Callable[[ImuSample], ImuSample] | None = None,
                 queue_length: int = QUEUE_LENGTH) -> None:
        self.sensor = SensorType(sensor.lower() if isinstance(sensor, str) else sensor)
        self.lidar_min_range = lidar_min_range
        self.lidar_max_range = lidar_max_range
        self.imu_converter = imu_converter or (lambda imu: imu)
        self.queue_length = queue_length

        self._imu_lock = threading.Lock()
        self._odom_lock = threading.Lock()
        self.imu_queue: deque[ImuSample] = deque()
        self.odom_queue: deque[Odometry] = deque()
        self.cloud_queue: deque[PointCloud] = deque()
        self.current_cloud: PointCloud | None = None

        self.laser_cloud_in: list[dict[str, float]] = []
        self.extracted_cloud: list[tuple[float, float, float, float]] = []
        self.deskew_flag = 0
        self._ring_flag = 0
        self.time_scan_cur = 0.0
        self.time_scan_end = 0.0
        self.odom_incre = (0.0, 0.0, 0.0)
        self.trans_start_inverse = np.eye(4)
        self.reset_parameters()

    def reset_parameters(self) -> None:
        """Clear per-scan state before the next scan."""
        self.laser_cloud_in = []
        self.imu_pointer_cur = 0
        self._imu_count = 0
        self.first_point_flag = True
        self.odom_deskew_flag = False
        self.imu_time = np.zeros(self.queue_length)
        self.imu_rot_x = np.zeros(self.queue_length)
        self.imu_rot_y = np.zeros(self.queue_length)
        self.imu_rot_z = np.zeros(self.queue_length)

    def imu_handler(self, imu: ImuSample) -> None:
        """Queue an IMU sample."""
        converted = self.imu_converter(imu)
        with self._imu_lock:
            self.imu_queue.append(converted)

    def odometry_handler(self, odom: Odometry) -> None:
        """Queue an incremental odometry message."""
        with self._odom_lock:
            self.odom_queue.append(odom)

    def cloud_handler(self, cloud: PointCloud) -> CloudInfo | None:
        """Process one incoming scan; return the deskewed scan once one is ready."""
        if not self.cache_point_cloud(cloud):
            return None
        if not self.deskew_info():
            return None
        extracted = self.project_point_cloud()
        info = CloudInfo(stamp=self.current_cloud.stamp, frame_id=self.current_cloud.frame_id,
                         cloud_deskewed=extracted)
        self.reset_parameters()
        return info

    def _load_current(self, mulran_relative: bool) -> None:
        cloud = self.current_cloud
        self.laser_cloud_in = normalize_points(self.sensor, cloud, mulran_relative)
        if not self.laser_cloud_in:
            raise CloudFormatError("point cloud holds no points")
        self.time_scan_cur = cloud.stamp
        self.time_scan_end = self.time_scan_cur + self.laser_cloud_in[-1]["time"]

        if not cloud.is_dense:
            raise CloudFormatError(
                "Point cloud is not in dense format, please remove NaN points first!")

        if self._ring_flag == 0:
            self._ring_flag = 1 if cloud.has_field("ring") else -1
        if self._ring_flag == -1:
            raise CloudFormatError(
                "Point cloud ring channel not available, please configure your point cloud data!")

        if self.deskew_flag == 0:
            if cloud.has_field("time") or cloud.has_field("t"):
                self.deskew_flag = 1
            else:
                self.deskew_flag = -1
                logger.warning("Point cloud timestamp not available, deskew function disabled, "
                               "system will drift significantly!")

    def cache_point_cloud(self, cloud: PointCloud) -> bool:
        """Queue a scan; take the oldest as current once more than two wait."""
        self.cloud_queue.append(cloud)
        if len(self.cloud_queue) <= 2:
            return False
        self.current_cloud = self.cloud_queue.popleft()
        self._load_current(mulran_relative=False)
        return True

    def deskew_info(self) -> bool:
        """Gather IMU and odometry motion for the current scan."""
        with self._imu_lock:
            if not self.imu_queue:
                return False
            self._load_current(mulran_relative=True)
            while self.imu_queue and self.imu_queue[0].stamp <= self.time_scan_cur:
                self._imu_deskew_info()
        self.odom_deskew_info()
        return True

    def _imu_deskew_info(self) -> None:
        sample = self.imu_queue.popleft()
        if self._imu_count == 0:
            self.imu_pointer_cur = 0
            self.imu_time[0] = sample.stamp
            self.imu_rot_x[0] = self.imu_rot_y[0] = self.imu_rot_z[0] = 0.0
            self._imu_count = 1
            return
        if self.imu_pointer_cur + 1 >= self.queue_length:
            return
        previous = self.imu_pointer_cur
        dt = sample.stamp - self.imu_time[previous]
        wx, wy, wz = sample.angular_velocity
        self.imu_pointer_cur += 1
        current = self.imu_pointer_cur
        self.imu_time[current] = sample.stamp
        self.imu_rot_x[current] = self.imu_rot_x[previous] + wx * dt
        self.imu_rot_y[current] = self.imu_rot_y[previous] + wy * dt
        self.imu_rot_z[current] = self.imu_rot_z[previous] + wz * dt
        self._imu_count += 1

    def odom_deskew_info(self) -> None:
        """Work out the translation over the scan from queued odometry."""
        with self._odom_lock:
            if not self.odom_queue:
                return
            if self.odom_queue[0].covariance[0] < 1e-3:
                return
            odoms = list(self.odom_queue)

        start = next((o for o in odoms if o.stamp >= self.time_scan_cur), odoms[-1])
        end = next((o for o in odoms if o.stamp >= self.time_scan_end), odoms[-1])
        if start.stamp == end.stamp:
            return

        self.odom_incre = tuple(e - s for s, e in zip(start.position, end.position))
        self.odom_deskew_flag = any(abs(v) > 0.001 for v in self.odom_incre)

    def find_rotation(self, point_time: float) -> tuple[float, float, float]:
        """Rotation at ``point_time``, interpolated between IMU samples."""
        front = 0
        while front < self.imu_pointer_cur:
            if point_time < self.imu_time[front]:
                break
            front += 1

        if point_time > self.imu_time[front] or front == 0:
            return (float(self.imu_rot_x[front]), float(self.imu_rot_y[front]),
                    float(self.imu_rot_z[front]))

        back = front - 1
        span = self.imu_time[front] - self.imu_time[back]
        ratio_front = (point_time - self.imu_time[back]) / span
        ratio_back = (self.imu_time[front] - point_time) / span
        return tuple(
            float(rot[front] * ratio_front + rot[back] * ratio_back)
            for rot in (self.imu_rot_x, self.imu_rot_y, self.imu_rot_z)
        )

    def find_position(self, rel_time: float) -> tuple[float, float, float]:
        """Translation at ``rel_time`` into the scan, scaled from the odometry increment."""
        span = self.time_scan_end - self.time_scan_cur
        if span == 0:
            return 0.0, 0.0, 0.0
        ratio = rel_time / span
        return tuple(ratio * v for v in self.odom_incre)

    def deskew_point(self, point: Sequence[float], rel_time: float) -> tuple[float, ...]:
        """Move ``(x, y, z, intensity)`` into the frame of the scan's first point."""
        if self.deskew_flag == -1 or self.time_scan_cur < 0:
            return tuple(point)

        rot_x, rot_y, rot_z = self.find_rotation(self.time_scan_cur + rel_time)
        pos = self.find_position(rel_time) if self.odom_deskew_flag else (0.0, 0.0, 0.0)

        trans_final = get_transformation(*pos, rot_x, rot_y, rot_z)
        if self.first_point_flag:
            self.trans_start_inverse = np.linalg.inv(trans_final)
            self.first_point_flag = False

        trans_bt = self.trans_start_inverse @ trans_final
        x, y, z, intensity = point
        moved = trans_bt[:3, :3] @ np.array([x, y, z]) + trans_bt[:3, 3]
        return float(moved[0]), float(moved[1]), float(moved[2]), float(intensity)

    def project_point_cloud(self) -> np.ndarray:
        """Deskew the current scan and add the in-range points to the extracted cloud."""
        for src in self.laser_cloud_in:
            point = (src["x"], src["y"], src["z"], src["intensity"])
            point_range = point_distance(point)
            if self.deskew_flag == 1:
                point = self.deskew_point(point, src["time"])
            if point_range < self.lidar_min_range or point_range > self.lidar_max_range:
                continue
            self.extracted_cloud.append(point)
        if not self.extracted_cloud:
            return np.zeros((0, 4))
        return np.array(self.extracted_cloud, dtype=float)


def _is_finite(values: Sequence[float]) -> bool:
    return all(math.isfinite(v) for v in values)