"""Sanity checks for the multi-person decoder on synthetic network outputs.

Paints two people into zeroed heatmap/displacement tensors, decodes them, and
prints every keypoint in source-image pixels.
"""

import sys
from pathlib import Path

import numpy as np

# Allow running this script directly without installing the package.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from posedecode.config import DecoderConfig, ImageSpec  # noqa: E402
from posedecode.io.normalization import ScaleTransform  # noqa: E402
from posedecode.vision.decoder import decode_multiple_poses  # noqa: E402
from posedecode.vision.skeleton import DEFAULT_SKELETON, NUM_KEYPOINTS  # noqa: E402

GRID = 33
STRIDE = 16
LAYOUT = [(2, 4), (1, 5), (1, 3), (1, 6), (1, 2), (4, 6), (4, 2), (6, 7), (6, 1),
          (8, 7), (8, 1), (9, 5), (9, 3), (12, 5), (12, 3), (15, 5), (15, 3)]


def paint(outputs, origin, score) -> None:
    heatmaps, _, fwd, bwd = outputs
    edges = DEFAULT_SKELETON.num_edges
    cells = [(origin[0] + r, origin[1] + c) for r, c in LAYOUT]
    for type_id, (row, col) in enumerate(cells):
        heatmaps[0, type_id, row, col] = score
    for edge in DEFAULT_SKELETON.edges:
        (pr, pc), (cr, cc) = cells[edge.parent], cells[edge.child]
        fwd[0, edge.index, pr, pc] = (cr - pr) * STRIDE
        fwd[0, edge.index + edges, pr, pc] = (cc - pc) * STRIDE
        bwd[0, edge.index, cr, cc] = (pr - cr) * STRIDE
        bwd[0, edge.index + edges, cr, cc] = (pc - cc) * STRIDE


def run_examples() -> None:
    outputs = (
        np.zeros((1, NUM_KEYPOINTS, GRID, GRID), dtype=np.float32),
        np.zeros((1, 2 * NUM_KEYPOINTS, GRID, GRID), dtype=np.float32),
        np.zeros((1, 2 * (NUM_KEYPOINTS - 1), GRID, GRID), dtype=np.float32),
        np.zeros((1, 2 * (NUM_KEYPOINTS - 1), GRID, GRID), dtype=np.float32),
    )
    paint(outputs, origin=(0, 0), score=0.9)
    paint(outputs, origin=(12, 18), score=0.7)

    spec = ImageSpec(width=1024, height=1024)
    scale = ScaleTransform.from_image_spec(spec, STRIDE)
    print(f"source=({spec.width}x{spec.height}) model={spec.model_input_size(STRIDE)} scale={scale}")

    poses = decode_multiple_poses(*outputs, scale=(scale.scale_x, scale.scale_y), config=DecoderConfig())
    for i, pose in enumerate(poses):
        print(f"pose {i}: score={pose.score:.3f}")
        for kp in pose.keypoints:
            name = DEFAULT_SKELETON.names[kp.type_id]
            print(f"  {name:<15} score={kp.score:.2f} at ({kp.coord.x:7.1f}, {kp.coord.y:7.1f})")

    assert len(poses) == 2, "Expected both people to be decoded"
    print("Decode checks passed.")


if __name__ == "__main__":
    run_examples()
