from __future__ import annotations

import json

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from pydantic import ValidationError

from api.schemas import DecodeRequest, DecodeResponse, SkeletonResponse
from api.services.decode import decode_upload
from posedecode.vision.skeleton import DEFAULT_SKELETON

router = APIRouter(tags=["decode"])


@router.post("/decode", response_model=DecodeResponse)
async def create_decode_request(
    metadata: str = Form("{}", description="DecodeRequest as JSON string."),
    tensors: UploadFile = File(..., description="NumPy .npz bundle with the four output tensors."),
) -> DecodeResponse:
    """
    Decode poses from an uploaded tensor bundle. Parameters are provided as a JSON string in the
    `metadata` form field and the tensors as a single `.npz` file in the `tensors` field.
    """
    try:
        payload = DecodeRequest.model_validate_json(metadata)
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid metadata JSON: {exc}") from exc
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return await decode_upload(payload, tensors)


@router.get("/skeleton", response_model=SkeletonResponse)
async def get_skeleton() -> SkeletonResponse:
    return SkeletonResponse(
        keypoints=list(DEFAULT_SKELETON.names),
        edges=DEFAULT_SKELETON.named_edges(),
    )
