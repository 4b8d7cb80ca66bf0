"""Draw decoded keypoints onto an image array."""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

from posedecode.vision.keypoints import PoseInstance

DEFAULT_COLOR = (255, 0, 0)


def draw_poses(
    image: np.ndarray,
    poses: Iterable[PoseInstance],
    *,
    min_pose_score: float = 0.25,
    min_keypoint_score: float = 0.5,
    radius: int = 3,
    color: Sequence[int] = DEFAULT_COLOR,
) -> np.ndarray:
    """Return a copy of ``image`` with a filled square on every confident keypoint.

    Args:
        image: ``(H, W, C)`` array in source-image pixel space.
        poses: Poses already rescaled to the image.
        min_pose_score: Poses scoring at or below this are skipped.
        min_keypoint_score: Keypoints scoring at or below this are skipped.
        radius: Half side of the square, in pixels.
        color: Channel values for the square; truncated or padded to ``C``.
    """
    if image.ndim != 3:
        raise ValueError(f"Expected an (H, W, C) image, got shape {image.shape}")

    canvas = image.copy()
    height, width, channels = canvas.shape
    fill = np.zeros(channels, dtype=canvas.dtype)
    values = list(color)[:channels]
    fill[: len(values)] = values
    if channels == 4 and len(values) < 4:
        fill[3] = np.iinfo(canvas.dtype).max if np.issubdtype(canvas.dtype, np.integer) else 1.0

    for pose in poses:
        if pose.score <= min_pose_score:
            continue
        for kp in pose.keypoints:
            if kp.score <= min_keypoint_score:
                continue
            cx, cy = int(kp.coord.x), int(kp.coord.y)
            x0, x1 = max(cx - radius, 0), min(cx + radius + 1, width)
            y0, y1 = max(cy - radius, 0), min(cy + radius + 1, height)
            if x0 < x1 and y0 < y1:
                canvas[y0:y1, x0:x1] = fill
    return canvas
