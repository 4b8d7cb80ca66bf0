"""On-disk cache utilities for decoded poses.

This module provides a lightweight JSONL cache keyed by (tensor bundle hash,
decoder config cache key) to avoid re-decoding when inputs are unchanged. One
line holds one frame; the format is intentionally simple to ease inspection
and debugging.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from posedecode.config import DecoderConfig
from posedecode.vision.keypoints import Keypoint, Point, PoseInstance


@dataclass
class DecodedFrame:
    """Poses decoded from one tensor bundle."""

    frame_index: int
    poses: List[PoseInstance] = field(default_factory=list)
    source: Optional[str] = None


def file_sha256(path: Path, *, chunk_size: int = 1024 * 1024) -> str:
    """Compute a deterministic hash for a tensor bundle to key caches."""

    sha = hashlib.sha256()
    with path.open("rb") as fh:
        while True:
            chunk = fh.read(chunk_size)
            if not chunk:
                break
            sha.update(chunk)
    return sha.hexdigest()


def cache_filename(bundle_hash: str, config: DecoderConfig, variant: str = "") -> str:
    """Build a cache filename using bundle hash and decoder config cache key."""
    suffix = f"-{variant}" if variant else ""
    return f"{bundle_hash}_{config.cache_key()}{suffix}.jsonl"


def cache_path(cache_dir: Path, bundle_path: Path, config: DecoderConfig, variant: str = "") -> Path:
    """Return the path for the cache file without creating it."""
    return cache_dir / cache_filename(file_sha256(bundle_path), config, variant)


def pose_to_dict(pose: PoseInstance, names: Optional[List[str]] = None) -> dict:
    """Plain-dict form of a pose, used by the cache, the CLI and the API."""
    keypoints = []
    for kp in pose.keypoints:
        entry = {"type_id": kp.type_id, "score": kp.score, "x": kp.coord.x, "y": kp.coord.y}
        if names is not None:
            entry["part"] = names[kp.type_id]
        keypoints.append(entry)
    return {"score": pose.score, "keypoints": keypoints}


def pose_from_dict(obj: dict) -> PoseInstance:
    keypoints = [
        Keypoint(type_id=kp["type_id"], score=kp["score"], coord=Point(x=kp["x"], y=kp["y"]))
        for kp in obj["keypoints"]
    ]
    return PoseInstance(keypoints=keypoints, score=obj["score"])


def _frame_to_json(frame: DecodedFrame) -> str:
    payload = {
        "frame_index": frame.frame_index,
        "source": frame.source,
        "poses": [pose_to_dict(pose) for pose in frame.poses],
    }
    return json.dumps(payload)


def _frame_from_obj(obj: dict) -> DecodedFrame:
    return DecodedFrame(
        frame_index=obj["frame_index"],
        poses=[pose_from_dict(pose) for pose in obj["poses"]],
        source=obj.get("source"),
    )


def save_decoded_frames(
    cache_file: Path, frames: Iterable[DecodedFrame], *, overwrite: bool = True
) -> Path:
    """Write decoded frames to a JSONL cache file.

    Args:
        cache_file: Destination path for the JSONL file.
        frames: Iterable of DecodedFrame instances.
        overwrite: Whether to overwrite an existing file.
    """

    cache_file.parent.mkdir(parents=True, exist_ok=True)
    if cache_file.exists() and not overwrite:
        raise FileExistsError(f"Cache already exists: {cache_file}")

    with cache_file.open("w", encoding="utf-8") as fh:
        for frame in frames:
            fh.write(_frame_to_json(frame))
            fh.write("\n")
    return cache_file


def load_decoded_frames(cache_file: Path) -> Iterator[DecodedFrame]:
    """Read decoded frames from a JSONL cache file."""
    with cache_file.open("r", encoding="utf-8") as fh:
        for line in fh:
            if not line.strip():
                continue
            yield _frame_from_obj(json.loads(line))
