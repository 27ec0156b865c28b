"""Readers and writers for RGB-D frame logs, ground-truth trajectories, JPEG images and camera frame buffers."""

__version__ = "0.1.0"

__all__ = ["camera", "ground_truth", "jpeg", "log_reader", "pose_match", "sync"]