"""Loading of network output tensors saved as NumPy ``.npz`` bundles.

The inference runtime is outside this package; it is expected to dump its four
output tensors into one archive. Arrays are looked up by friendly name first
and by the PoseNet graph node name second, so raw dumps from an unmodified
graph load without renaming.
"""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Dict, Mapping, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

TENSOR_KEYS: Dict[str, Tuple[str, ...]] = {
    "heatmaps": ("heatmaps", "heatmap"),
    "offsets": ("offsets", "Conv2D_1"),
    "displacement_fwd": ("displacement_fwd", "Conv2D_2"),
    "displacement_bwd": ("displacement_bwd", "Conv2D_3"),
}


class TensorBundleError(RuntimeError):
    """Raised when a tensor bundle is missing, unreadable, or incomplete."""


@dataclass(frozen=True)
class TensorBundle:
    """The four decoder inputs produced by one forward pass."""

    heatmaps: np.ndarray
    offsets: np.ndarray
    displacement_fwd: np.ndarray
    displacement_bwd: np.ndarray

    def as_tuple(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        return (self.heatmaps, self.offsets, self.displacement_fwd, self.displacement_bwd)


def _pick(arrays: Mapping[str, np.ndarray], field: str) -> np.ndarray:
    for key in TENSOR_KEYS[field]:
        if key in arrays:
            return np.asarray(arrays[key], dtype=np.float32)
    raise TensorBundleError(
        f"Tensor bundle is missing '{field}' (looked for {', '.join(TENSOR_KEYS[field])}); "
        f"found {sorted(arrays)}"
    )


def bundle_from_arrays(arrays: Mapping[str, np.ndarray]) -> TensorBundle:
    """Assemble a :class:`TensorBundle` from a name -> array mapping."""
    return TensorBundle(**{field: _pick(arrays, field) for field in TENSOR_KEYS})


def load_tensor_bundle(source: Union[str, Path, bytes, BinaryIO]) -> TensorBundle:
    """Read a tensor bundle from a path, raw bytes, or a binary file object.

    Raises:
        TensorBundleError: if the file does not exist, is not a valid ``.npz``
            archive, or lacks one of the four tensors.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise TensorBundleError(f"Tensor bundle does not exist: {path}")
        handle: Union[Path, BinaryIO] = path
    elif isinstance(source, bytes):
        handle = io.BytesIO(source)
    else:
        handle = source

    try:
        with np.load(handle, allow_pickle=False) as archive:
            arrays = {name: archive[name] for name in archive.files}
    except (OSError, ValueError, TypeError, AttributeError, zipfile.BadZipFile) as exc:
        raise TensorBundleError(f"Invalid tensor bundle: {exc}") from exc

    bundle = bundle_from_arrays(arrays)
    logger.info(
        "Loaded tensor bundle: heatmaps=%s offsets=%s displacement_fwd=%s displacement_bwd=%s",
        bundle.heatmaps.shape,
        bundle.offsets.shape,
        bundle.displacement_fwd.shape,
        bundle.displacement_bwd.shape,
    )
    return bundle


def save_tensor_bundle(path: Path, bundle: TensorBundle, *, overwrite: bool = True) -> Path:
    """Write a bundle under its friendly names."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and not overwrite:
        raise FileExistsError(f"Tensor bundle already exists: {path}")
    with path.open("wb") as fh:
        np.savez(
            fh,
            heatmaps=bundle.heatmaps,
            offsets=bundle.offsets,
            displacement_fwd=bundle.displacement_fwd,
            displacement_bwd=bundle.displacement_bwd,
        )
    return path
