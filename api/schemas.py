import math
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, conlist, field_validator, model_validator

from posedecode.config import DecoderConfig

_DEFAULTS = DecoderConfig()


class TensorLayout(str, Enum):
    NCHW = "nchw"
    NHWC = "nhwc"


class DecodeRequest(BaseModel):
    """
    Decode parameters validated via Pydantic (preferred here over a bare dataclass for parsing and OpenAPI docs).
    """
    source_size: Optional[conlist(int, min_length=2, max_length=2)] = Field(
        None, description="Source image (width, height); the scale is derived from it and output_stride."
    )
    scale: Optional[conlist(float, min_length=2, max_length=2)] = Field(
        None, description="Explicit (scale_x, scale_y) from model input to source pixels."
    )
    layout: TensorLayout = Field(TensorLayout.NCHW, description="Memory layout of the uploaded tensors.")
    output_stride: int = Field(_DEFAULTS.output_stride, gt=0)
    score_threshold: float = Field(_DEFAULTS.score_threshold)
    local_maximum_radius: int = Field(_DEFAULTS.local_maximum_radius, ge=0)
    nms_radius: float = Field(_DEFAULTS.nms_radius, ge=0)
    min_pose_score: float = Field(_DEFAULTS.min_pose_score)
    max_pose_detections: int = Field(_DEFAULTS.max_pose_detections, ge=0)

    @field_validator("source_size")
    @classmethod
    def source_size_positive(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        if v is not None and min(v) <= 0:
            raise ValueError("source_size values must be positive integers")
        return v

    @field_validator("scale")
    @classmethod
    def scale_finite_positive(cls, v: Optional[List[float]]) -> Optional[List[float]]:
        if v is not None and any(math.isnan(x) or math.isinf(x) or x <= 0 for x in v):
            raise ValueError("scale values must be finite numbers > 0")
        return v

    @model_validator(mode="after")
    def one_scale_source(self) -> "DecodeRequest":
        if self.source_size is not None and self.scale is not None:
            raise ValueError("provide either source_size or scale, not both")
        return self

    def decoder_config(self) -> DecoderConfig:
        return DecoderConfig(
            output_stride=self.output_stride,
            score_threshold=self.score_threshold,
            local_maximum_radius=self.local_maximum_radius,
            nms_radius=self.nms_radius,
            min_pose_score=self.min_pose_score,
            max_pose_detections=self.max_pose_detections,
        )


class KeypointModel(BaseModel):
    type_id: int
    part: str
    score: float
    x: float
    y: float


class PoseModel(BaseModel):
    score: float
    keypoints: List[KeypointModel]


class DecodeResponse(BaseModel):
    num_poses: int
    scale: Tuple[float, float] = Field(..., description="Scale applied to model-space coordinates.")
    poses: List[PoseModel]


class SkeletonResponse(BaseModel):
    keypoints: List[str]
    edges: List[Tuple[str, str]]
