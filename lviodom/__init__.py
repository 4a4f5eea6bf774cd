"""LiDAR-inertial odometry building blocks: point deskewing, transform fusion and scan-to-map matching."""

__version__ = "0.1.0"