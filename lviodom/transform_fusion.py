"""Fuse high-rate IMU odometry with the latest lidar odometry."""

from __future__ import annotations

import threading
from collections import deque

import numpy as np

from .messages import Odometry
from .transforms import (
    get_transformation,
    quaternion_to_rpy,
    rotation_to_quaternion,
)


def odom_to_affine(odom: Odometry) -> np.ndarray:
    """Homogeneous matrix of an odometry pose."""
    roll, pitch, yaw = quaternion_to_rpy(odom.orientation)
    x, y, z = odom.position
    return get_transformation(x, y, z, roll, pitch, yaw)


class TransformFusion:
    """Chains incremental IMU odometry onto the last lidar odometry pose."""

    def __init__(self, lidar_frame: str = "base_link", baselink_frame: str = "base_link",
                 odom_frame: str = "odom", map_frame: str = "map") -> None:
        self.lidar_frame = lidar_frame
        self.baselink_frame = baselink_frame
        self.odometry_frame = odom_frame
        self.map_frame = map_frame
        self.lidar_odom_time: float | None = None
        self.lidar_odom_affine = np.eye(4)
        self.imu_odom_affine = np.eye(4)
        self.imu_odom_queue: deque[Odometry] = deque()
        self.path: list[Odometry] = []
        self._lock = threading.Lock()

    def lidar_odometry_handler(self, odom: Odometry) -> None:
        """Remember the latest lidar odometry pose and its time."""
        with self._lock:
            self.lidar_odom_time = odom.stamp
            self.lidar_odom_affine = odom_to_affine(odom)

    def imu_odometry_handler(self, odom: Odometry) -> list[Odometry]:
        """Queue an IMU odometry message and return the fused poses now due."""
        with self._lock:
            self.imu_odom_queue.append(odom)
            if self.lidar_odom_time is None:
                return []

            fused: list[Odometry] = []
            while self.imu_odom_queue:
                current = self.imu_odom_queue.popleft()
                if current.stamp <= self.lidar_odom_time:
                    continue
                self.imu_odom_affine = self.lidar_odom_affine @ odom_to_affine(current)
                translation = self.imu_odom_affine[:3, 3]
                orientation = rotation_to_quaternion(self.imu_odom_affine[:3, :3])
                result = Odometry(
                    stamp=current.stamp,
                    position=tuple(translation),
                    orientation=orientation,
                    frame_id=self.odometry_frame,
                    child_frame_id=self.baselink_frame,
                )
                fused.append(result)
                self.path.append(result)
            return fused