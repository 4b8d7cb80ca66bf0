"""
Service helpers that run the pose decoder for API requests.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Tuple

from fastapi import HTTPException, UploadFile

from api.schemas import DecodeRequest, DecodeResponse, PoseModel
from posedecode.config import ImageSpec
from posedecode.io.normalization import ScaleTransform
from posedecode.io.tensors import TensorBundleError, load_tensor_bundle
from posedecode.vision.cache import pose_to_dict
from posedecode.vision.decoder import MultiPoseDecoder
from posedecode.vision.skeleton import DEFAULT_SKELETON

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MiB
MAX_BUNDLE_BYTES = 64 * CHUNK_SIZE


async def read_upload(upload: UploadFile, limit: int = MAX_BUNDLE_BYTES) -> bytes:
    """
    Read an UploadFile into memory using chunked reads, rejecting oversized bundles.
    """
    chunks = []
    total = 0
    try:
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            total += len(chunk)
            if total > limit:
                raise HTTPException(status_code=413, detail=f"Tensor bundle exceeds {limit} bytes")
            chunks.append(chunk)
    finally:
        await upload.close()
    return b"".join(chunks)


def resolve_scale(payload: DecodeRequest) -> ScaleTransform:
    if payload.source_size is not None:
        width, height = payload.source_size
        return ScaleTransform.from_image_spec(ImageSpec(width=width, height=height), payload.output_stride)
    if payload.scale is not None:
        return ScaleTransform(*payload.scale)
    return ScaleTransform()


def _decode(payload: DecodeRequest, data: bytes) -> Tuple[ScaleTransform, list]:
    scale = resolve_scale(payload)
    decoder = MultiPoseDecoder(payload.decoder_config(), layout=payload.layout.value)
    bundle = load_tensor_bundle(data)
    poses = decoder.decode(*bundle.as_tuple(), scale=(scale.scale_x, scale.scale_y))
    return scale, poses


async def decode_upload(payload: DecodeRequest, upload: UploadFile) -> DecodeResponse:
    """
    Decode the uploaded tensor bundle off the event loop and build the response.
    """
    data = await read_upload(upload)
    try:
        scale, poses = await asyncio.to_thread(_decode, payload, data)
    except (TensorBundleError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    logger.info("Decoded %d poses from %s", len(poses), upload.filename or "upload")
    names = list(DEFAULT_SKELETON.names)
    return DecodeResponse(
        num_poses=len(poses),
        scale=(scale.scale_x, scale.scale_y),
        poses=[PoseModel(**pose_to_dict(pose, names)) for pose in poses],
    )
