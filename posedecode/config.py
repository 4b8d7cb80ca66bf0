"""Shared configuration and geometry models used across the decoding pipeline."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ImageSpec:
    """Source image geometry used to size the network input and map results back.

    Attributes:
        width: Pixel width of the source image.
        height: Pixel height of the source image.
    """

    width: int
    height: int

    def model_input_size(self, output_stride: int) -> Tuple[int, int]:
        """Return the (width, height) the network expects for this image.

        The network input is snapped down to a multiple of the output stride
        plus one, so that grid cell ``i`` sits exactly at pixel ``i * stride``.
        """
        if output_stride <= 0:
            raise ValueError("output_stride must be positive")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("image width and height must be positive")
        return (
            (self.width // output_stride) * output_stride + 1,
            (self.height // output_stride) * output_stride + 1,
        )

    def scale_for(self, output_stride: int) -> Tuple[float, float]:
        """Ratio of source size to model input size, per axis."""
        model_width, model_height = self.model_input_size(output_stride)
        return (self.width / model_width, self.height / model_height)


@dataclass(frozen=True)
class DecoderConfig:
    """Tuning parameters for multi-person pose decoding.

    Defaults match the PoseNet MobileNet checkpoints evaluated at stride 16.

    Attributes:
        output_stride: Pixels of model input per heatmap grid cell.
        score_threshold: Minimum heatmap value for a seed candidate.
        local_maximum_radius: Chebyshev radius of the local maximum window.
        nms_radius: Pixel distance under which two same-type keypoints are
            considered the same person.
        min_pose_score: Instances must score strictly above this to be kept.
        max_pose_detections: Upper bound on the number of returned poses.
    """

    output_stride: int = 16
    score_threshold: float = 0.5
    local_maximum_radius: int = 1
    nms_radius: float = 20.0
    min_pose_score: float = 0.25
    max_pose_detections: int = 10

    @property
    def squared_nms_radius(self) -> float:
        return self.nms_radius * self.nms_radius

    def validate(self) -> "DecoderConfig":
        """Raise ``ValueError`` for parameters the decoder cannot work with."""
        if self.output_stride <= 0:
            raise ValueError("output_stride must be positive")
        if self.local_maximum_radius < 0:
            raise ValueError("local_maximum_radius must be non-negative")
        if self.nms_radius < 0:
            raise ValueError("nms_radius must be non-negative")
        if self.max_pose_detections < 0:
            raise ValueError("max_pose_detections must be non-negative")
        return self

    def cache_key(self) -> str:
        """Return a short string usable in cache file naming."""
        return (
            f"os{self.output_stride}"
            f"-thr{self.score_threshold:.2f}"
            f"-lmr{self.local_maximum_radius}"
            f"-nms{self.nms_radius:g}"
            f"-min{self.min_pose_score:.2f}"
            f"-max{self.max_pose_detections}"
        )
