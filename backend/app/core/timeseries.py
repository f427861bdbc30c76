"""Binary codec for hourly series stored in ``LargeBinary`` columns.

Series are zlib-compressed little-endian float64 buffers.  Matrices (one row
per forecast year) carry a 16-byte header with their row and column counts so
an empty or ragged forecast round-trips without guessing the shape.
"""

from __future__ import annotations

import zlib

import numpy as np

_DTYPE = np.dtype("<f8")
_HEADER_DTYPE = np.dtype("<i8")
_HEADER_BYTES = 2 * _HEADER_DTYPE.itemsize


class SeriesDecodeError(ValueError):
    """A persisted series could not be decoded into the expected shape."""


def encode_series(arr: np.ndarray) -> bytes:
    return zlib.compress(np.asarray(arr, dtype=_DTYPE).ravel().tobytes())


def decode_series(data: bytes | None, length: int | None = None) -> np.ndarray | None:
    """Decode a 1-D series.  ``None`` in gives ``None`` out.

    Raises SeriesDecodeError if the payload is corrupt or, when ``length`` is
    given, has a different number of values.
    """
    if data is None:
        return None
    try:
        raw = zlib.decompress(data)
    except zlib.error as exc:
        raise SeriesDecodeError(f"corrupt series payload: {exc}") from exc
    if len(raw) % _DTYPE.itemsize:
        raise SeriesDecodeError(f"series payload of {len(raw)} bytes is not float64 aligned")

    arr = np.frombuffer(raw, dtype=_DTYPE).astype(np.float64)
    if length is not None and arr.size != length:
        raise SeriesDecodeError(f"expected {length} values, got {arr.size}")
    return arr


def encode_matrix(arr: np.ndarray) -> bytes:
    matrix = np.atleast_2d(np.asarray(arr, dtype=_DTYPE))
    header = np.array(matrix.shape, dtype=_HEADER_DTYPE).tobytes()
    return zlib.compress(header + matrix.tobytes())


def decode_matrix(data: bytes | None, columns: int | None = None) -> np.ndarray | None:
    """Decode a ``(rows, columns)`` matrix.  ``None`` in gives ``None`` out."""
    if data is None:
        return None
    try:
        raw = zlib.decompress(data)
    except zlib.error as exc:
        raise SeriesDecodeError(f"corrupt matrix payload: {exc}") from exc
    if len(raw) < _HEADER_BYTES:
        raise SeriesDecodeError("matrix payload is missing its shape header")

    rows, cols = (int(v) for v in np.frombuffer(raw[:_HEADER_BYTES], dtype=_HEADER_DTYPE))
    body = raw[_HEADER_BYTES:]
    if rows < 0 or cols < 0 or len(body) != rows * cols * _DTYPE.itemsize:
        raise SeriesDecodeError(f"matrix payload does not match shape ({rows}, {cols})")
    if columns is not None and rows and cols != columns:
        raise SeriesDecodeError(f"expected {columns} columns, got {cols}")

    return np.frombuffer(body, dtype=_DTYPE).astype(np.float64).reshape(rows, cols)
