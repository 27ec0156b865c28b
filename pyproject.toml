[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fusionlog"
version = "0.1.0"
description = "Readers for RGB-D capture logs, ground-truth trajectories and camera frame buffers"
requires-python = ">=3.10"
keywords = ["rgbd", "depth", "frame log", "trajectory", "odometry", "jpeg"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["fusionlog"]

[tool.pytest.ini_options]
addopts = "-ra"
