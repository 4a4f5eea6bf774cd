import math

import numpy as np
import pytest

from lviodom.transforms import (
    Pose6D,
    get_transformation,
    quaternion_to_rpy,
    rotation_to_quaternion,
    rpy_to_quaternion,
    transform_to_affine,
    transform_to_pose,
    translation_and_euler,
)


def test_zero_pose_is_identity():
    assert np.allclose(get_transformation(0, 0, 0, 0, 0, 0), np.eye(4))


def test_rotation_part_is_orthonormal():
    m = get_transformation(1, 2, 3, 0.3, -0.4, 1.1)
    r = m[:3, :3]
    assert np.allclose(r @ r.T, np.eye(3))
    assert np.linalg.det(r) == pytest.approx(1.0)
    assert np.allclose(m[3], [0, 0, 0, 1])


def test_yaw_turns_x_axis_in_plane():
    yaw = 0.7
    m = get_transformation(0, 0, 0, 0, 0, yaw)
    v = m[:3, :3] @ np.array([1.0, 0.0, 0.0])
    assert np.allclose(v, [math.cos(yaw), math.sin(yaw), 0.0])


@pytest.mark.parametrize("pose", [
    (1.0, -2.0, 0.5, 0.1, 0.2, 0.3),
    (0.0, 0.0, 0.0, -1.2, 0.9, -2.5),
    (5.0, 4.0, -3.0, 3.0, -1.4, 3.1),
])
def test_translation_and_euler_round_trip(pose):
    assert np.allclose(translation_and_euler(get_transformation(*pose)), pose)


def test_translation_and_euler_rejects_bad_shape():
    with pytest.raises(ValueError):
        translation_and_euler(np.eye(3))


@pytest.mark.parametrize("rpy", [(0.1, 0.2, 0.3), (-1.0, 0.5, 2.9), (2.0, -1.2, -0.4)])
def test_quaternion_rpy_round_trip(rpy):
    q = rpy_to_quaternion(*rpy)
    assert sum(c * c for c in q) == pytest.approx(1.0)
    assert np.allclose(quaternion_to_rpy(q), rpy)


def test_quaternion_to_rpy_accepts_scaled_quaternion():
    q = rpy_to_quaternion(0.3, -0.2, 1.0)
    scaled = tuple(3.0 * c for c in q)
    assert np.allclose(quaternion_to_rpy(scaled), (0.3, -0.2, 1.0))


def test_quaternion_to_rpy_at_gimbal_lock():
    roll, pitch, yaw = quaternion_to_rpy(rpy_to_quaternion(0.0, math.pi / 2, 0.0))
    assert pitch == pytest.approx(math.pi / 2)
    assert yaw == 0.0


def test_quaternion_to_rpy_rejects_zero():
    with pytest.raises(ValueError):
        quaternion_to_rpy((0.0, 0.0, 0.0, 0.0))


@pytest.mark.parametrize("rpy", [(0.1, 0.2, 0.3), (3.0, 0.1, -3.0), (0.0, 0.0, math.pi)])
def test_rotation_to_quaternion_matches_rpy(rpy):
    m = get_transformation(0, 0, 0, *rpy)
    q = np.array(rotation_to_quaternion(m))
    expected = np.array(rpy_to_quaternion(*rpy))
    assert np.allclose(q, expected) or np.allclose(q, -expected)


def test_rotation_to_quaternion_identity():
    assert np.allclose(rotation_to_quaternion(np.eye(3)), (0, 0, 0, 1))


def test_rotation_to_quaternion_rejects_bad_shape():
    with pytest.raises(ValueError):
        rotation_to_quaternion(np.eye(2))


def test_transform_to_affine_uses_rpy_then_xyz_order():
    transform = [0.1, 0.2, 0.3, 4.0, 5.0, 6.0]
    m = transform_to_affine(transform)
    assert np.allclose(m, get_transformation(4.0, 5.0, 6.0, 0.1, 0.2, 0.3))


def test_transform_to_pose_and_back():
    transform = [0.1, -0.2, 0.3, 4.0, 5.0, 6.0]
    pose = transform_to_pose(transform)
    assert (pose.x, pose.y, pose.z) == (4.0, 5.0, 6.0)
    assert (pose.roll, pose.pitch, pose.yaw) == (0.1, -0.2, 0.3)
    assert np.allclose(pose.to_affine(), transform_to_affine(transform))


def test_transform_rejects_wrong_length():
    with pytest.raises(ValueError):
        transform_to_pose([1.0, 2.0, 3.0])


def test_pose_to_affine_matches_get_transformation():
    pose = Pose6D(x=1, y=2, z=3, roll=0.4, pitch=0.5, yaw=0.6, intensity=7, time=8.0)
    assert np.allclose(pose.to_affine(), get_transformation(1, 2, 3, 0.4, 0.5, 0.6))