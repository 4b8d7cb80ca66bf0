"""Non-maximum suppression and instance scoring against already-accepted poses."""

from __future__ import annotations

from typing import Sequence

from posedecode.vision.keypoints import Point, PoseInstance


def within_nms_radius(
    point: Point,
    type_id: int,
    poses: Sequence[PoseInstance],
    squared_nms_radius: float,
) -> bool:
    """True if ``point`` is within the NMS radius of keypoint ``type_id`` of any pose."""
    for pose in poses:
        other = pose.keypoints[type_id].coord
        if (other.x - point.x) ** 2 + (other.y - point.y) ** 2 <= squared_nms_radius:
            return True
    return False


def instance_score(
    instance: PoseInstance,
    poses: Sequence[PoseInstance],
    squared_nms_radius: float,
) -> float:
    """Mean keypoint score, counting keypoints that overlap an accepted pose as 0."""
    total = 0.0
    for kp in instance.keypoints:
        if not within_nms_radius(kp.coord, kp.type_id, poses, squared_nms_radius):
            total += kp.score
    return total / len(instance.keypoints)
