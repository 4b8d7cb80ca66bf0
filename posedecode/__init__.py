"""posedecode: multi-person pose decoding for PoseNet-style networks.

This package turns the heatmap, offset and displacement tensors produced by a
pose network into a bounded list of people with 17 scored keypoints each, in
source-image pixel coordinates. Running the network and reading images are
left to the caller.
"""

__all__ = [
    "cli",
    "config",
]

__version__ = "0.1.0"
