"""Coordinate transforms between model input space and source image space.

The decoder works in the pixel space of the resized network input. This
module maps decoded coordinates back onto the source image so overlays and
exports line up with the original frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Tuple

from posedecode.config import ImageSpec

if TYPE_CHECKING:
    from posedecode.vision.keypoints import Point, PoseInstance


@dataclass(frozen=True)
class ScaleTransform:
    """Per-axis scaling from model input pixels to source pixels.

    Attributes:
        scale_x: Source width divided by model input width.
        scale_y: Source height divided by model input height.
    """

    scale_x: float = 1.0
    scale_y: float = 1.0

    @classmethod
    def from_sizes(cls, source_size: Tuple[int, int], model_size: Tuple[int, int]) -> "ScaleTransform":
        """Build the transform from (width, height) pairs."""
        source_w, source_h = source_size
        model_w, model_h = model_size
        if model_w <= 0 or model_h <= 0:
            raise ValueError(f"Model input size must be positive, got {model_size}")
        return cls(scale_x=source_w / model_w, scale_y=source_h / model_h)

    @classmethod
    def from_image_spec(cls, spec: ImageSpec, output_stride: int) -> "ScaleTransform":
        return cls(*spec.scale_for(output_stride))

    @property
    def is_identity(self) -> bool:
        return self.scale_x == 1.0 and self.scale_y == 1.0

    def to_source(self, point: "Point") -> "Point":
        """Map one point from model input space to source space."""
        return type(point)(x=point.x * self.scale_x, y=point.y * self.scale_y)

    def apply(self, poses: Iterable["PoseInstance"]) -> None:
        """Rescale every keypoint of every pose in place."""
        if self.is_identity:
            return
        for pose in poses:
            for kp in pose.keypoints:
                kp.coord = self.to_source(kp.coord)
