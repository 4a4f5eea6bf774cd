import pytest

from lviodom.messages import PointCloud
from lviodom.point_formats import SensorType, normalize_points


def test_velodyne_points_pass_through():
    src = [{"x": 1.0, "y": 2.0, "z": 3.0, "intensity": 7.0, "ring": 4, "time": 0.01}]
    out = normalize_points(SensorType.VELODYNE, PointCloud(stamp=0.0, points=src))
    assert out == [{"x": 1.0, "y": 2.0, "z": 3.0, "intensity": 7.0, "ring": 4, "time": 0.01}]


def test_ouster_time_is_nanoseconds():
    src = [{"x": 1.0, "y": 0.0, "z": 0.0, "intensity": 1.0, "t": 500_000_000, "ring": 2}]
    out = normalize_points("ouster", src)
    assert out[0]["time"] == pytest.approx(0.5)
    assert out[0]["ring"] == 2


def test_robosense_time_relative_to_first_point():
    src = [
        {"x": 0.0, "y": 0.0, "z": 0.0, "intensity": 0.0, "ring": 0, "timestamp": 100.25},
        {"x": 0.0, "y": 0.0, "z": 0.0, "intensity": 0.0, "ring": 0, "timestamp": 100.5},
    ]
    out = normalize_points(SensorType.ROBOSENSE, src)
    assert out[0]["time"] == 0.0
    assert out[1]["time"] == pytest.approx(100.5 - 100.25)


def test_mulran_relative_uses_earliest_point():
    src = [
        {"x": 0.0, "y": 0.0, "z": 0.0, "intensity": 0.0, "ring": 1, "t": 2_000_000},
        {"x": 0.0, "y": 0.0, "z": 0.0, "intensity": 0.0, "ring": 1, "t": 1_000_000},
    ]
    out = normalize_points(SensorType.MULRAN, src, mulran_relative=True)
    assert out[1]["time"] == 0.0
    assert out[0]["time"] == pytest.approx(1.0)


def test_mulran_absolute_keeps_raw_time():
    src = [{"x": 0.0, "y": 0.0, "z": 0.0, "intensity": 0.0, "ring": 1, "t": 1234}]
    out = normalize_points(SensorType.MULRAN, src, mulran_relative=False)
    assert out[0]["time"] == 1234.0


def test_livox_and_velodyne_agree():
    src = [{"x": 3.0, "y": 1.0, "z": 2.0, "intensity": 5.0, "ring": 3, "time": 0.2}]
    assert normalize_points("livox", src) == normalize_points("velodyne", src)


def test_empty_cloud_gives_no_points():
    assert normalize_points(SensorType.ROBOSENSE, []) == []


def test_unknown_sensor_raises():
    with pytest.raises(ValueError):
        normalize_points("hesai", [{"x": 0.0}])