"""Grow a full pose from a single seed keypoint by walking the skeleton tree.

Each step starts at a decoded keypoint, follows the mid-range displacement
vector of the connecting edge to land near the neighbouring keypoint, then
snaps to that grid cell and refines with the short-range offsets.
"""

from __future__ import annotations

import math
from typing import Tuple

from posedecode.vision.keypoints import Point, PoseInstance
from posedecode.vision.skeleton import SkeletonGraph
from posedecode.vision.tensor import TensorView


def _round_half_away(value: float) -> int:
    if value >= 0:
        return int(math.floor(value + 0.5))
    return int(math.ceil(value - 0.5))


def grid_index(coord: float, output_stride: int, size: int) -> int:
    """Map a pixel coordinate onto a grid axis of ``size`` cells, clipped."""
    index = _round_half_away(coord / output_stride)
    return min(max(index, 0), size - 1)


def traverse_to_target(
    edge_index: int,
    source: Point,
    target_id: int,
    displacement: TensorView,
    heatmaps: TensorView,
    offsets: TensorView,
    output_stride: int,
) -> Tuple[float, Point]:
    """Step from ``source`` along one edge and return the target's (score, point)."""
    height, width = heatmaps.height, heatmaps.width

    source_row = grid_index(source.y, output_stride, height)
    source_col = grid_index(source.x, output_stride, width)
    dy, dx = displacement.read_vector(edge_index, source_row, source_col)

    target_row = grid_index(source.y + dy, output_stride, height)
    target_col = grid_index(source.x + dx, output_stride, width)

    score = heatmaps.read(target_id, target_row, target_col)
    off_y, off_x = offsets.read_vector(target_id, target_row, target_col)
    return score, Point(
        x=target_col * output_stride + off_x,
        y=target_row * output_stride + off_y,
    )


def propagate_pose(
    instance: PoseInstance,
    skeleton: SkeletonGraph,
    heatmaps: TensorView,
    offsets: TensorView,
    displacement_fwd: TensorView,
    displacement_bwd: TensorView,
    output_stride: int,
) -> PoseInstance:
    """Fill in every undecoded keypoint of ``instance`` reachable from its seed.

    The backward pass walks edges leaf-to-root and fills parents from decoded
    children; the forward pass then walks root-to-leaf and fills children from
    decoded parents. A keypoint counts as decoded once its score is non-zero.
    The instance is updated in place and returned.
    """
    keypoints = instance.keypoints

    for edge in skeleton.backward_edges():
        source, target = keypoints[edge.child], keypoints[edge.parent]
        if source.score > 0.0 and target.score == 0.0:
            target.score, target.coord = traverse_to_target(
                edge.index, source.coord, edge.parent, displacement_bwd, heatmaps, offsets, output_stride
            )

    for edge in skeleton.forward_edges():
        source, target = keypoints[edge.parent], keypoints[edge.child]
        if source.score > 0.0 and target.score == 0.0:
            target.score, target.coord = traverse_to_target(
                edge.index, source.coord, edge.child, displacement_fwd, heatmaps, offsets, output_stride
            )

    return instance
