"""Ground-truth camera poses read from a trajectory file."""

from __future__ import annotations

from pathlib import Path

import numpy as np

# Poses in the file use the iSAM axis convention; this maps between the two.
_ISAM_BASIS = np.array(
    [
        [0, 0, 1, 0],
        [-1, 0, 0, 0],
        [0, -1, 0, 0],
        [0, 0, 0, 1],
    ],
    dtype=np.float32,
)


def pose_matrix(x, y, z, qx, qy, qz, qw) -> np.ndarray:
    """Build a 4x4 rigid transform from a translation and a quaternion."""
    rotation = np.array(
        [
            [1 - 2 * (qy * qy + qz * qz), 2 * (qx * qy - qz * qw), 2 * (qx * qz + qy * qw)],
            [2 * (qx * qy + qz * qw), 1 - 2 * (qx * qx + qz * qz), 2 * (qy * qz - qx * qw)],
            [2 * (qx * qz - qy * qw), 2 * (qy * qz + qx * qw), 1 - 2 * (qx * qx + qy * qy)],
        ],
        dtype=np.float32,
    )
    pose = np.eye(4, dtype=np.float32)
    pose[:3, :3] = rotation
    pose[:3, 3] = (x, y, z)
    return pose


def _parse_line(line: str, number: int) -> tuple[int, np.ndarray]:
    fields = line.split(",")
    if len(fields) < 8:
        raise ValueError(f"line {number}: expected 8 comma-separated values")
    try:
        utime = int(fields[0].strip())
        x, y, z, qx, qy, qz, qw = (float(f) for f in fields[1:8])
    except ValueError as exc:
        raise ValueError(f"line {number}: {exc}") from exc
    return utime, pose_matrix(x, y, z, qx, qy, qz, qw)


def load_trajectory(path) -> dict[int, np.ndarray]:
    """Read ``utime,x,y,z,qx,qy,qz,qw`` lines into poses keyed by time.

    Only lines ending in a newline are read; a final unterminated line is ignored.
    """
    trajectory: dict[int, np.ndarray] = {}
    with Path(path).open() as fh:
        for number, line in enumerate(fh, start=1):
            if not line.endswith("\n"):
                break
            utime, pose = _parse_line(line.rstrip("\n"), number)
            trajectory[utime] = pose
    return dict(sorted(trajectory.items()))


class GroundTruthOdometry:
    """Supplies camera poses from a recorded trajectory instead of tracking."""

    def __init__(self, filename) -> None:
        self.trajectory = load_trajectory(filename)
        self.last_utime = 0

    def get_transformation(self, timestamp: int) -> np.ndarray:
        """Return the pose at ``timestamp`` in camera axes.

        The first call returns the identity. Raises KeyError for a timestamp
        the trajectory does not hold.
        """
        pose = np.eye(4, dtype=np.float32)
        if self.last_utime != 0:
            if self.last_utime not in self.trajectory:
                self.last_utime = timestamp
                return pose
            pose = _ISAM_BASIS.T @ self.trajectory[timestamp] @ _ISAM_BASIS
        else:
            self.trajectory[self.last_utime] = self.trajectory[timestamp]
        self.last_utime = timestamp
        return pose

    def get_covariance(self) -> np.ndarray:
        """Return the fixed 6x6 covariance of a ground-truth pose."""
        return np.diag([0.1, 0.1, 0.1, 0.5, 0.5, 0.5])