"""Multi-person pose decoding from PoseNet-style output tensors.

Typical use:

    >>> decoder = MultiPoseDecoder(DecoderConfig())
    >>> poses = decoder.decode(heatmaps, offsets, displacement_fwd, displacement_bwd, scale=(1.2, 1.2))

Inputs may be numpy arrays (``(1, C, H, W)`` by default) or
:class:`~posedecode.vision.tensor.TensorView` instances.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from posedecode.config import DecoderConfig
from posedecode.io.normalization import ScaleTransform
from posedecode.vision.keypoints import (
    PoseInstance,
    extract_local_maxima,
    localize,
    rank_candidates,
)
from posedecode.vision.nms import instance_score, within_nms_radius
from posedecode.vision.propagation import propagate_pose
from posedecode.vision.skeleton import DEFAULT_SKELETON, SkeletonGraph, SkeletonGraphError
from posedecode.vision.tensor import TensorView, as_tensor_view

logger = logging.getLogger(__name__)


class MultiPoseDecoder:
    """Greedy multi-person decoder bound to one configuration and skeleton.

    Args:
        config: Thresholds, radii and output stride.
        skeleton: Keypoint tree; defaults to the 17-keypoint COCO skeleton.
        layout: Memory layout of raw array inputs, ``"nchw"`` or ``"nhwc"``.
    """

    def __init__(
        self,
        config: Optional[DecoderConfig] = None,
        skeleton: SkeletonGraph = DEFAULT_SKELETON,
        layout: str = "nchw",
    ) -> None:
        self.config = (config or DecoderConfig()).validate()
        if skeleton.num_edges != skeleton.num_keypoints - 1:
            raise SkeletonGraphError(
                f"Skeleton over {skeleton.num_keypoints} keypoints needs {skeleton.num_keypoints - 1} edges, "
                f"got {skeleton.num_edges}"
            )
        self.skeleton = skeleton
        self.layout = layout

    def decode(
        self,
        heatmaps,
        offsets,
        displacement_fwd,
        displacement_bwd,
        scale: Tuple[float, float] = (1.0, 1.0),
    ) -> List[PoseInstance]:
        """Decode up to ``max_pose_detections`` poses and map them to source pixels.

        Returns:
            Accepted poses in discovery order. Empty when nothing clears the
            thresholds.

        Raises:
            ValueError: if tensor shapes disagree with each other or the skeleton.
        """
        heatmaps = as_tensor_view(heatmaps, self.layout)
        offsets = as_tensor_view(offsets, self.layout)
        displacement_fwd = as_tensor_view(displacement_fwd, self.layout)
        displacement_bwd = as_tensor_view(displacement_bwd, self.layout)
        self._check_shapes(heatmaps, offsets, displacement_fwd, displacement_bwd)

        config = self.config
        squared_radius = config.squared_nms_radius
        candidates = rank_candidates(
            extract_local_maxima(heatmaps, config.score_threshold, config.local_maximum_radius)
        )
        logger.debug("Found %d seed candidates on a %dx%d grid", len(candidates), heatmaps.height, heatmaps.width)

        poses: List[PoseInstance] = []
        for candidate in candidates:
            if len(poses) >= config.max_pose_detections:
                break

            seed = localize(candidate, offsets, config.output_stride)
            if within_nms_radius(seed, candidate.type_id, poses, squared_radius):
                continue

            instance = PoseInstance.empty(self.skeleton.num_keypoints)
            root = instance.keypoints[candidate.type_id]
            root.score, root.coord = candidate.score, seed
            propagate_pose(
                instance,
                self.skeleton,
                heatmaps,
                offsets,
                displacement_fwd,
                displacement_bwd,
                config.output_stride,
            )

            instance.score = instance_score(instance, poses, squared_radius)
            if instance.score > config.min_pose_score:
                poses.append(instance)

        logger.debug("Accepted %d of %d candidates", len(poses), len(candidates))
        ScaleTransform(*scale).apply(poses)
        return poses

    def _check_shapes(
        self,
        heatmaps: TensorView,
        offsets: TensorView,
        displacement_fwd: TensorView,
        displacement_bwd: TensorView,
    ) -> None:
        num_keypoints = self.skeleton.num_keypoints
        num_edges = self.skeleton.num_edges
        expected = {
            "heatmaps": (heatmaps, num_keypoints),
            "offsets": (offsets, 2 * num_keypoints),
            "displacement_fwd": (displacement_fwd, 2 * num_edges),
            "displacement_bwd": (displacement_bwd, 2 * num_edges),
        }
        grid = (heatmaps.height, heatmaps.width)
        for name, (view, channels) in expected.items():
            if view.channels != channels:
                raise ValueError(f"{name} must have {channels} channels, got {view.channels}")
            if (view.height, view.width) != grid:
                raise ValueError(
                    f"{name} grid {view.height}x{view.width} does not match heatmaps grid {grid[0]}x{grid[1]}"
                )


def decode_multiple_poses(
    heatmaps,
    offsets,
    displacement_fwd,
    displacement_bwd,
    scale: Tuple[float, float] = (1.0, 1.0),
    *,
    config: Optional[DecoderConfig] = None,
    skeleton: SkeletonGraph = DEFAULT_SKELETON,
    layout: str = "nchw",
) -> List[PoseInstance]:
    """Convenience wrapper around :meth:`MultiPoseDecoder.decode`."""
    decoder = MultiPoseDecoder(config, skeleton=skeleton, layout=layout)
    return decoder.decode(heatmaps, offsets, displacement_fwd, displacement_bwd, scale=scale)
