"""Command-line interface for decoding saved network outputs.

Examples:
- `posedecode decode outputs.npz --source-size 1280 720 --output poses.jsonl`
- `posedecode decode outputs.npz --scale 1.0 1.0 --cache-dir .cache/poses`
- `posedecode skeleton`
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from posedecode.config import DecoderConfig, ImageSpec
from posedecode.io.normalization import ScaleTransform
from posedecode.io.tensors import load_tensor_bundle
from posedecode.vision.cache import (
    DecodedFrame,
    cache_path,
    load_decoded_frames,
    pose_to_dict,
    save_decoded_frames,
)
from posedecode.vision.decoder import MultiPoseDecoder
from posedecode.vision.skeleton import DEFAULT_SKELETON

logger = logging.getLogger(__name__)


def eprint(*args: object) -> None:
    print(*args, file=sys.stderr)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    defaults = DecoderConfig()
    p = argparse.ArgumentParser(
        prog="posedecode",
        description="Decode multi-person poses from saved PoseNet output tensors.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging on stderr")
    sub = p.add_subparsers(dest="command", required=True)

    d = sub.add_parser("decode", help="Decode one .npz tensor bundle")
    d.add_argument("bundle", help="Path to a .npz file holding heatmaps, offsets and displacements")
    d.add_argument("--source-size", nargs=2, type=int, metavar=("W", "H"), default=None,
                   help="Source image size; the scale is derived from it and --output-stride")
    d.add_argument("--scale", nargs=2, type=float, metavar=("SX", "SY"), default=None,
                   help="Explicit model-to-source scale (default: 1 1)")
    d.add_argument("--layout", choices=["nchw", "nhwc"], default="nchw",
                   help="Memory layout of the stored tensors (default: nchw)")
    d.add_argument("--output-stride", type=int, default=defaults.output_stride)
    d.add_argument("--score-threshold", type=float, default=defaults.score_threshold)
    d.add_argument("--local-maximum-radius", type=int, default=defaults.local_maximum_radius)
    d.add_argument("--nms-radius", type=float, default=defaults.nms_radius)
    d.add_argument("--min-pose-score", type=float, default=defaults.min_pose_score)
    d.add_argument("--max-poses", type=int, default=defaults.max_pose_detections)
    d.add_argument("--output", default=None, help="Write the decoded frame to this JSONL file")
    d.add_argument("--cache-dir", default=None,
                   help="Reuse/store results keyed by bundle hash and decoder settings")
    d.add_argument("--overwrite", action="store_true", help="Overwrite --output if it exists")

    sub.add_parser("skeleton", help="Print keypoint names and skeleton edges")
    return p.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> DecoderConfig:
    return DecoderConfig(
        output_stride=args.output_stride,
        score_threshold=args.score_threshold,
        local_maximum_radius=args.local_maximum_radius,
        nms_radius=args.nms_radius,
        min_pose_score=args.min_pose_score,
        max_pose_detections=args.max_poses,
    ).validate()


def validate_args(args: argparse.Namespace) -> None:
    if args.source_size is not None and args.scale is not None:
        raise ValueError("Use either --source-size or --scale, not both.")
    if args.source_size is not None and min(args.source_size) <= 0:
        raise ValueError("--source-size values must be positive integers.")
    if args.scale is not None and min(args.scale) <= 0:
        raise ValueError("--scale values must be positive.")

    bundle = Path(args.bundle).expanduser()
    if not bundle.exists():
        raise FileNotFoundError(f"Tensor bundle not found: {bundle}")

    if args.output is not None:
        out_path = Path(args.output).expanduser()
        if out_path.exists() and not args.overwrite:
            raise FileExistsError(
                f"Output file already exists: {out_path}\n"
                f"Use --overwrite to replace it, or choose a different --output path."
            )


def resolve_scale(args: argparse.Namespace, config: DecoderConfig) -> ScaleTransform:
    if args.source_size is not None:
        width, height = args.source_size
        return ScaleTransform.from_image_spec(ImageSpec(width=width, height=height), config.output_stride)
    if args.scale is not None:
        return ScaleTransform(*args.scale)
    return ScaleTransform()


def decode_bundle(args: argparse.Namespace) -> DecodedFrame:
    """Decode the bundle named in ``args``; the cache holds model-space poses."""
    config = config_from_args(args)
    bundle_path = Path(args.bundle).expanduser()

    cache_file = None
    frame = None
    if args.cache_dir is not None:
        cache_file = cache_path(Path(args.cache_dir).expanduser(), bundle_path, config, args.layout)
        if cache_file.exists():
            cached = list(load_decoded_frames(cache_file))
            if cached:
                logger.info("Using cached poses from %s", cache_file)
                frame = cached[0]
            else:
                logger.warning("Ignoring empty cache file %s", cache_file)

    if frame is None:
        decoder = MultiPoseDecoder(config, layout=args.layout)
        poses = decoder.decode(*load_tensor_bundle(bundle_path).as_tuple())
        frame = DecodedFrame(frame_index=0, poses=poses, source=str(bundle_path))
        if cache_file is not None:
            save_decoded_frames(cache_file, [frame])

    resolve_scale(args, config).apply(frame.poses)
    return frame


def run(args: argparse.Namespace) -> int:
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "skeleton":
            print(json.dumps({
                "keypoints": list(DEFAULT_SKELETON.names),
                "edges": DEFAULT_SKELETON.named_edges(),
            }, indent=2))
            return 0

        validate_args(args)
        frame = decode_bundle(args)

        if args.output is not None:
            save_decoded_frames(Path(args.output).expanduser(), [frame], overwrite=args.overwrite)

        names = list(DEFAULT_SKELETON.names)
        print(json.dumps({
            "source": frame.source,
            "num_poses": len(frame.poses),
            "poses": [pose_to_dict(pose, names) for pose in frame.poses],
        }, indent=2))
        return 0

    except Exception as ex:
        eprint(f"Error: {ex}")
        return 2


def run_cli(argv: Optional[List[str]] = None) -> int:
    return run(parse_args(argv))


if __name__ == "__main__":
    raise SystemExit(run_cli())
