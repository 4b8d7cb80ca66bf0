"""Synthetic PoseNet outputs for decoder tests."""

from typing import Dict, Tuple

import numpy as np

from posedecode.vision.skeleton import DEFAULT_SKELETON, NUM_KEYPOINTS

STRIDE = 16
GRID = 33
NUM_EDGES = NUM_KEYPOINTS - 1

# Grid cell (row, col) per keypoint for one upright person, relative to an origin.
PERSON_LAYOUT: Dict[int, Tuple[int, int]] = {
    0: (2, 4),
    1: (1, 5),
    2: (1, 3),
    3: (1, 6),
    4: (1, 2),
    5: (4, 6),
    6: (4, 2),
    7: (6, 7),
    8: (6, 1),
    9: (8, 7),
    10: (8, 1),
    11: (9, 5),
    12: (9, 3),
    13: (12, 5),
    14: (12, 3),
    15: (15, 5),
    16: (15, 3),
}


def empty_outputs(grid: int = GRID) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Zero-filled (heatmaps, offsets, displacement_fwd, displacement_bwd) in NCHW."""
    return (
        np.zeros((1, NUM_KEYPOINTS, grid, grid), dtype=np.float32),
        np.zeros((1, 2 * NUM_KEYPOINTS, grid, grid), dtype=np.float32),
        np.zeros((1, 2 * NUM_EDGES, grid, grid), dtype=np.float32),
        np.zeros((1, 2 * NUM_EDGES, grid, grid), dtype=np.float32),
    )


def person_cells(origin: Tuple[int, int]) -> Dict[int, Tuple[int, int]]:
    row0, col0 = origin
    return {k: (row0 + r, col0 + c) for k, (r, c) in PERSON_LAYOUT.items()}


def paint_person(outputs, origin: Tuple[int, int], score: float) -> Dict[int, Tuple[int, int]]:
    """Write one person into ``outputs`` so every edge displacement is exact.

    Returns the grid cell used for each keypoint type.
    """
    heatmaps, _, displacement_fwd, displacement_bwd = outputs
    cells = person_cells(origin)
    for type_id, (row, col) in cells.items():
        heatmaps[0, type_id, row, col] = score

    for edge in DEFAULT_SKELETON.edges:
        (pr, pc), (cr, cc) = cells[edge.parent], cells[edge.child]
        dy, dx = (cr - pr) * STRIDE, (cc - pc) * STRIDE
        displacement_fwd[0, edge.index, pr, pc] = dy
        displacement_fwd[0, edge.index + NUM_EDGES, pr, pc] = dx
        displacement_bwd[0, edge.index, cr, cc] = -dy
        displacement_bwd[0, edge.index + NUM_EDGES, cr, cc] = -dx
    return cells


def set_offset(offsets: np.ndarray, type_id: int, row: int, col: int, dy: float, dx: float) -> None:
    offsets[0, type_id, row, col] = dy
    offsets[0, type_id + NUM_KEYPOINTS, row, col] = dx
