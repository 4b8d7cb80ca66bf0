"""Keypoint data model and seed candidate extraction.

Seeds for multi-person decoding come from the heatmaps: every cell that is a
local maximum of its channel and clears the score threshold becomes a
:class:`KeypointCandidate`. Candidates are ranked by score and turned into
image-space points with the short-range offsets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

import numpy as np

from posedecode.vision.tensor import TensorView


@dataclass(frozen=True)
class Point:
    """Pixel coordinate in model input (or, after rescaling, source) space."""

    x: float
    y: float


@dataclass
class Keypoint:
    """Single decoded keypoint. ``score == 0`` marks it as not yet decoded."""

    type_id: int
    score: float = 0.0
    coord: Point = Point(0.0, 0.0)


@dataclass
class PoseInstance:
    """One person: a score and exactly one keypoint per keypoint type."""

    keypoints: List[Keypoint]
    score: float = 0.0

    @classmethod
    def empty(cls, num_keypoints: int) -> "PoseInstance":
        return cls(keypoints=[Keypoint(type_id=i) for i in range(num_keypoints)])

    @property
    def keypoint_scores(self) -> List[float]:
        return [kp.score for kp in self.keypoints]

    @property
    def keypoint_coords(self) -> List[Point]:
        return [kp.coord for kp in self.keypoints]

    def to_array(self) -> np.ndarray:
        """Return a ``(K, 3)`` float32 array of ``(x, y, score)`` rows."""
        return np.array(
            [(kp.coord.x, kp.coord.y, kp.score) for kp in self.keypoints],
            dtype=np.float32,
        ).reshape(len(self.keypoints), 3)


@dataclass(frozen=True)
class KeypointCandidate:
    """Heatmap local maximum that may seed a new pose."""

    type_id: int
    score: float
    row: int
    col: int


def extract_local_maxima(
    heatmaps: TensorView,
    score_threshold: float,
    radius: int = 1,
) -> List[KeypointCandidate]:
    """Find cells that are local maxima of their channel and clear the threshold.

    A cell qualifies when no cell within Chebyshev distance ``radius`` holds a
    larger value (equal values do not disqualify it) and its own value is at
    least ``score_threshold``. Neighbours outside the grid count as 0.

    Returns:
        Candidates in channel, row, column order.
    """
    scores = heatmaps.as_array()
    window = 2 * radius + 1
    padded = np.pad(scores, ((0, 0), (radius, radius), (radius, radius)), constant_values=0)
    windows = np.lib.stride_tricks.sliding_window_view(padded, (window, window), axis=(1, 2))
    neighbourhood_max = windows.max(axis=(-2, -1))

    mask = (scores >= neighbourhood_max) & (scores >= score_threshold)
    channels, rows, cols = np.nonzero(mask)
    return [
        KeypointCandidate(type_id=int(c), score=float(scores[c, r, x]), row=int(r), col=int(x))
        for c, r, x in zip(channels, rows, cols)
    ]


def rank_candidates(candidates: Iterable[KeypointCandidate]) -> List[KeypointCandidate]:
    """Sort by descending score; equal scores keep their discovery order."""
    return sorted(candidates, key=lambda c: -c.score)


def localize(candidate: KeypointCandidate, offsets: TensorView, output_stride: int) -> Point:
    """Refine a candidate's grid cell into an image-space point."""
    dy, dx = offsets.read_vector(candidate.type_id, candidate.row, candidate.col)
    return Point(
        x=candidate.col * output_stride + dx,
        y=candidate.row * output_stride + dy,
    )
