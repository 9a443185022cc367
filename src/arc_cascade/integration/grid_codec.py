"""Compact binary encoding for lists of grids.

Layout, all integers little-endian::

    u32  magic 0x4B4F4C53 ("KOLS")
    u8   version (1)
    u16  grid count
    per grid:
        u16 rows, u16 cols, u8 packed flag
        packed:   ceil(rows*cols / 2) bytes, low nibble first
        unpacked: rows*cols bytes

Cells are row-major. A grid is packed when every value is below 16.
"""

import struct
from typing import List, Sequence

import numpy as np

from arc_cascade.core.data_models import Grid

MAGIC = 0x4B4F4C53
VERSION = 1

_HEADER = struct.Struct("<IBH")
_GRID_HEADER = struct.Struct("<HHB")
_MAX_DIM = 0xFFFF


class GridFormatError(ValueError):
    """Raised for payloads that are not valid encoded grids."""
    pass


def _pack_nibbles(cells: np.ndarray) -> bytes:
    flat = cells.astype(np.uint8)
    if len(flat) % 2:
        flat = np.append(flat, np.uint8(0))
    return (flat[0::2] | (flat[1::2] << 4)).astype(np.uint8).tobytes()


def _unpack_nibbles(data: bytes, count: int) -> np.ndarray:
    raw = np.frombuffer(data, dtype=np.uint8)
    cells = np.empty(len(raw) * 2, dtype=np.int32)
    cells[0::2] = raw & 0x0F
    cells[1::2] = raw >> 4
    return cells[:count]


def encode_grid(grid: Grid) -> bytes:
    """Encode one grid without the file header."""
    grid = np.asarray(grid)
    if grid.ndim != 2:
        raise GridFormatError(f"Grid must be 2D, got {grid.ndim}D")
    rows, cols = grid.shape
    if rows > _MAX_DIM or cols > _MAX_DIM:
        raise GridFormatError(f"Grid {rows}x{cols} exceeds {_MAX_DIM} per side")
    cells = grid.ravel()
    if cells.size and (cells.min() < 0 or cells.max() > 255):
        raise GridFormatError("Cell values must be in 0..255")

    packed = bool(cells.size == 0 or cells.max() < 16)
    header = _GRID_HEADER.pack(rows, cols, 1 if packed else 0)
    body = _pack_nibbles(cells) if packed else cells.astype(np.uint8).tobytes()
    return header + body


def encode_grids(grids: Sequence[Grid]) -> bytes:
    """Encode grids behind the magic/version/count header."""
    if len(grids) > _MAX_DIM:
        raise GridFormatError(f"At most {_MAX_DIM} grids per payload")
    parts = [_HEADER.pack(MAGIC, VERSION, len(grids))]
    parts.extend(encode_grid(g) for g in grids)
    return b"".join(parts)


def decode_grids(data: bytes) -> List[Grid]:
    """Decode a payload produced by :func:`encode_grids`.

    Raises:
        GridFormatError: On a bad header, unknown version or truncated body
    """
    if len(data) < _HEADER.size:
        raise GridFormatError("Payload shorter than header")
    magic, version, count = _HEADER.unpack_from(data, 0)
    if magic != MAGIC:
        raise GridFormatError(f"Bad magic 0x{magic:08X}")
    if version != VERSION:
        raise GridFormatError(f"Unsupported version {version}")

    offset = _HEADER.size
    grids = []
    for i in range(count):
        if offset + _GRID_HEADER.size > len(data):
            raise GridFormatError(f"Truncated header for grid {i}")
        rows, cols, packed = _GRID_HEADER.unpack_from(data, offset)
        offset += _GRID_HEADER.size
        n = rows * cols
        length = (n + 1) // 2 if packed else n
        if offset + length > len(data):
            raise GridFormatError(f"Truncated body for grid {i}")
        body = data[offset:offset + length]
        offset += length
        if packed:
            cells = _unpack_nibbles(body, n)
        else:
            cells = np.frombuffer(body, dtype=np.uint8).astype(np.int32)
        grids.append(cells.reshape(rows, cols) if n else np.zeros((rows, cols), dtype=np.int32))
    return grids
