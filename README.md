# lviodom

Building blocks for LiDAR-inertial odometry, written in plain Python on top of
NumPy and SciPy. The package works on simple message objects and on point
clouds held as arrays. You can drive it from recorded data, from a robotics
middleware of your choice, or from tests.

## What is inside

| Module | Purpose |
| --- | --- |
| `lviodom.common` | `version_banner` start-up text and `point_distance` (Euclidean distance) |
| `lviodom.transforms` | `get_transformation`, `translation_and_euler`, quaternion and Euler conversions, `transform_to_affine`, `transform_to_pose` and `Pose6D` |
| `lviodom.messages` | `ImuSample`, `Odometry`, `PointCloud` and `CloudInfo` dataclasses |
| `lviodom.transform_fusion` | `TransformFusion` chains high-rate IMU odometry onto the latest lidar odometry; also provides `odom_to_affine` |
| `lviodom.point_formats` | `SensorType` and `normalize_points` for Velodyne, Livox, Ouster, Robosense and MulRan point layouts |
| `lviodom.image_projection` | `ImageProjection` caches scans, gathers IMU and odometry motion, deskews points and filters them by range |
| `lviodom.scan_matching` | `ScanMatcher` does point-to-plane scan-to-map matching with degeneracy handling; also provides `fit_plane`, `slerp`, `blend_roll_pitch` and `constrain` |

## Installation

Install the package with your usual Python package installer. It needs
Python 3.10 or newer, NumPy and SciPy. The `test` extra adds pytest.

## Conventions

- A matrix is a 4x4 homogeneous NumPy array. Its rotation is
  `Rz(yaw) @ Ry(pitch) @ Rx(roll)`.
- A transform list is `[roll, pitch, yaw, x, y, z]`.
- A quaternion is `(x, y, z, w)`.
- A deskewed cloud is an `(N, 4)` array of `x, y, z, intensity`.

```python
from lviodom.transforms import get_transformation, translation_and_euler

matrix = get_transformation(1.0, 2.0, 0.5, 0.0, 0.0, 0.3)
x, y, z, roll, pitch, yaw = translation_and_euler(matrix)
```

`constrain` clamps a value into `[-limit, limit]`. The scan matcher applies it
to roll, pitch and z after each update:

```python
from lviodom.scan_matching import constrain

constrain(0.7, 0.5)   # 0.5
constrain(-0.7, 0.5)  # -0.5
```

## Pipeline outline

1. **Feed `ImageProjection`.**
   - Pass IMU samples to `imu_handler` and incremental odometry to
     `odometry_handler`.
   - Hand each incoming `PointCloud` to `cloud_handler`.
   - Scans are queued. Once more than two are waiting and IMU data is
     present, the oldest scan is brought to a common layout with
     `normalize_points`, deskewed, and filtered by range.
   - `cloud_handler` then returns a `CloudInfo`; until then it returns `None`.
   - `CloudFormatError` is raised for these scans:
     - a scan that is not dense;
     - a scan with no `ring` field;
     - a scan with no points.
2. **Match the scan.** `ScanMatcher.match(scan, local_map, transform)`
   registers the deskewed points against a local map you supply. It returns
   the refined transform. If there are too few points, it returns the input
   transform unchanged and sets `last_match_ok` to false.
   `ScanMatcher.transform_update` then blends roll and pitch with the IMU
   values in the `CloudInfo` and clamps roll, pitch and z.
3. **Fuse the odometry.** `TransformFusion.lidar_odometry_handler` records the
   latest lidar pose. `TransformFusion.imu_odometry_handler` returns the IMU
   odometry messages newer than that pose, chained onto it.

## What the package does not do

- It has no command-line program and no message transport. You call the
  handlers yourself and use what they return.
- It does not build or keep a keyframe map, so the local map given to
  `ScanMatcher.match` must come from your own code.
- There is no pose-graph optimisation, loop closure or GPS fusion.
- There are no voxel-grid or PCD file utilities, and no map saving.

## Running the tests

The test suite uses pytest and lives in the `tests` directory.