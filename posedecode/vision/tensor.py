"""Read-only strided access to network output tensors.

Network runtimes hand back dense float buffers shaped ``(1, C, H, W)`` or
``(1, H, W, C)``. :class:`TensorView` wraps such a buffer without copying it
and exposes a bounds-checked ``read(channel, row, col)`` so the decoder never
does index arithmetic on flat memory.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

SUPPORTED_LAYOUTS = {"nchw", "nhwc"}


class TensorView:
    """Bounds-checked ``(channel, row, col)`` accessor over a batch-1 tensor.

    Args:
        data: Array of rank 4 with batch size 1, or rank 3 without a batch axis.
        layout: ``"nchw"`` (default) or ``"nhwc"``; describes ``data``.
    """

    def __init__(self, data: np.ndarray, layout: str = "nchw") -> None:
        layout = layout.lower()
        if layout not in SUPPORTED_LAYOUTS:
            raise ValueError(f"Unsupported layout: {layout}. Expected one of {SUPPORTED_LAYOUTS}.")

        array = np.asarray(data)
        if array.ndim == 4:
            if array.shape[0] != 1:
                raise ValueError(f"Expected batch size 1, got shape {array.shape}")
            array = array[0]
        elif array.ndim != 3:
            raise ValueError(f"Expected a rank 3 or rank 4 tensor, got shape {array.shape}")

        if layout == "nhwc":
            array = np.transpose(array, (2, 0, 1))

        self._array = array.view()
        self._array.flags.writeable = False
        self.layout = layout

    @property
    def channels(self) -> int:
        return self._array.shape[0]

    @property
    def height(self) -> int:
        return self._array.shape[1]

    @property
    def width(self) -> int:
        return self._array.shape[2]

    @property
    def shape(self) -> Tuple[int, int, int]:
        """(channels, height, width) regardless of the underlying layout."""
        return (self.channels, self.height, self.width)

    @property
    def strides(self) -> Tuple[int, int, int]:
        """Element strides for the (channel, row, col) axes."""
        itemsize = self._array.itemsize
        return tuple(s // itemsize for s in self._array.strides)

    def read(self, channel: int, row: int, col: int) -> float:
        """Return the value at ``(channel, row, col)``.

        Raises:
            IndexError: if any index falls outside the tensor.
        """
        if not 0 <= channel < self.channels:
            raise IndexError(f"channel {channel} out of range [0, {self.channels})")
        if not 0 <= row < self.height:
            raise IndexError(f"row {row} out of range [0, {self.height})")
        if not 0 <= col < self.width:
            raise IndexError(f"col {col} out of range [0, {self.width})")
        return float(self._array[channel, row, col])

    def read_vector(self, index: int, row: int, col: int) -> Tuple[float, float]:
        """Return the ``(dy, dx)`` pair stored for ``index`` at a grid cell.

        Vector tensors keep all y components in the first half of their
        channels and all x components in the second half.
        """
        half = self.channels // 2
        return (self.read(index, row, col), self.read(index + half, row, col))

    def plane(self, channel: int) -> np.ndarray:
        """Return a read-only 2D view of one channel."""
        if not 0 <= channel < self.channels:
            raise IndexError(f"channel {channel} out of range [0, {self.channels})")
        return self._array[channel]

    def as_array(self) -> np.ndarray:
        """Return a read-only ``(C, H, W)`` view of the whole tensor."""
        return self._array.view()

    def __repr__(self) -> str:
        return f"TensorView(shape={self.shape}, layout={self.layout!r})"


def as_tensor_view(data, layout: str = "nchw") -> TensorView:
    """Wrap ``data`` in a :class:`TensorView` unless it already is one."""
    if isinstance(data, TensorView):
        return data
    return TensorView(data, layout=layout)
