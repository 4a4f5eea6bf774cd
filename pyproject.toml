[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lviodom"
version = "0.1.0"
description = "LiDAR-inertial odometry building blocks: point deskewing, transform fusion and scan-to-map matching"
requires-python = ">=3.10"
keywords = [
    "lidar",
    "imu",
    "odometry",
    "slam",
    "point-cloud",
    "deskew",
    "scan-matching",
    "robotics",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
    "Typing :: Typed",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["lviodom"]

[tool.hatch.build.targets.sdist]
include = ["lviodom", "tests"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
