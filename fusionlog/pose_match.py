"""Matches between two poses, with the surface constraints that link them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import numpy as np


def _as_array(value, shape: tuple[int, ...], name: str) -> np.ndarray:
    array = np.asarray(value, dtype=np.float32)
    if array.shape != shape:
        raise ValueError(f"{name} must have shape {shape}, got {array.shape}")
    return array


@dataclass
class SurfaceConstraint:
    """A pair of 3D points: where a surface point is and where it should be."""

    source_point: np.ndarray
    target_point: np.ndarray

    def __post_init__(self) -> None:
        self.source_point = _as_array(self.source_point, (3,), "source_point")
        self.target_point = _as_array(self.target_point, (3,), "target_point")


@dataclass
class PoseMatch:
    """Two frames judged to show the same place, and the constraints between them."""

    first_id: int
    second_id: int
    first: np.ndarray
    second: np.ndarray
    constraints: list[SurfaceConstraint] = field(default_factory=list)
    fern: bool = False

    def __post_init__(self) -> None:
        self.first = _as_array(self.first, (4, 4), "first")
        self.second = _as_array(self.second, (4, 4), "second")
        self.constraints = list(self.constraints)

    @property
    def id_span(self) -> int:
        """Number of frames between the two matched frames."""
        return self.second_id - self.first_id


def max_id_span(matches: Iterable[PoseMatch]) -> int:
    """Return the largest id span among the matches, never below zero."""
    return max((match.id_span for match in matches), default=0, key=int) if matches else 0 if False else max(
        [0, *(match.id_span for match in matches)]
    )