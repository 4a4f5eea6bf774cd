import numpy as np
import pytest

from lviodom.messages import Odometry
from lviodom.transform_fusion import TransformFusion, odom_to_affine
from lviodom.transforms import (
    get_transformation,
    quaternion_to_rpy,
    rpy_to_quaternion,
    translation_and_euler,
)


def test_no_output_before_lidar_odometry():
    fusion = TransformFusion()
    out = fusion.imu_odometry_handler(Odometry(stamp=1.0, position=(1, 2, 3)))
    assert out == []
    assert len(fusion.imu_odom_queue) == 1


def test_old_imu_odometry_is_dropped():
    fusion = TransformFusion()
    fusion.lidar_odometry_handler(Odometry(stamp=5.0))
    out = fusion.imu_odometry_handler(Odometry(stamp=4.0, position=(1, 0, 0)))
    assert out == []
    assert len(fusion.imu_odom_queue) == 0


def test_identity_lidar_keeps_imu_position_and_frames():
    fusion = TransformFusion()
    fusion.lidar_odometry_handler(Odometry(stamp=1.0))
    out = fusion.imu_odometry_handler(Odometry(stamp=2.0, position=(1, 2, 3)))
    assert len(out) == 1
    assert out[0].position == pytest.approx((1, 2, 3))
    assert out[0].frame_id == "odom"
    assert out[0].child_frame_id == "base_link"
    assert out[0].stamp == 2.0


def test_composition_with_lidar_pose():
    fusion = TransformFusion()
    lidar_q = rpy_to_quaternion(0.0, 0.0, 0.4)
    fusion.lidar_odometry_handler(Odometry(stamp=1.0, position=(1, 0, 0), orientation=lidar_q))
    out = fusion.imu_odometry_handler(Odometry(stamp=2.0, position=(0, 1, 0)))
    expected = get_transformation(1, 0, 0, 0, 0, 0.4) @ get_transformation(0, 1, 0, 0, 0, 0)
    assert out[0].position == pytest.approx(tuple(expected[:3, 3]))
    assert np.allclose(fusion.imu_odom_affine, expected)


def test_queued_messages_flushed_in_order():
    fusion = TransformFusion()
    fusion.imu_odometry_handler(Odometry(stamp=1.0))
    fusion.imu_odometry_handler(Odometry(stamp=2.0))
    fusion.lidar_odometry_handler(Odometry(stamp=0.5))
    out = fusion.imu_odometry_handler(Odometry(stamp=3.0))
    assert [o.stamp for o in out] == [1.0, 2.0, 3.0]
    assert [o.stamp for o in fusion.path] == [1.0, 2.0, 3.0]


def test_odom_to_affine_roundtrip():
    q = rpy_to_quaternion(0.1, 0.2, 0.3)
    matrix = odom_to_affine(Odometry(stamp=0.0, position=(4, 5, 6), orientation=q))
    assert translation_and_euler(matrix) == pytest.approx((4, 5, 6, 0.1, 0.2, 0.3))


def test_orientation_survives_fusion():
    fusion = TransformFusion()
    fusion.lidar_odometry_handler(Odometry(stamp=0.0))
    q = rpy_to_quaternion(0.1, 0.2, 0.3)
    out = fusion.imu_odometry_handler(Odometry(stamp=1.0, orientation=q))
    assert quaternion_to_rpy(out[0].orientation) == pytest.approx((0.1, 0.2, 0.3))