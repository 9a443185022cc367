"""Tests for the binary grid codec."""

import struct

import numpy as np
import pytest

from arc_cascade.integration.grid_codec import (
    MAGIC, VERSION, GridFormatError, decode_grids, encode_grid, encode_grids
)


def g(rows):
    return np.array(rows, dtype=np.int32)


class TestEncoding:

    def test_header_layout(self):
        """Test payload header fields."""
        payload = encode_grids([g([[1, 2, 3]])])
        magic, version, count = struct.unpack_from("<IBH", payload, 0)
        assert (magic, version, count) == (MAGIC, VERSION, 1)
        assert payload[:4] == b"SLOK"

    def test_nibble_packing_low_first(self):
        """Test small values pack two per byte, low nibble first."""
        body = encode_grid(g([[1, 2, 3]]))
        rows, cols, packed = struct.unpack_from("<HHB", body, 0)
        assert (rows, cols, packed) == (1, 3, 1)
        assert body[5:] == bytes([0x21, 0x03])

    def test_large_values_unpacked(self):
        """Test values of 16 or more are stored one per byte."""
        body = encode_grid(g([[200, 1]]))
        assert body[4] == 0
        assert body[5:] == bytes([200, 1])

    def test_rejects_out_of_range(self):
        """Test values above a byte raise error."""
        with pytest.raises(GridFormatError):
            encode_grid(g([[256]]))
        with pytest.raises(GridFormatError):
            encode_grid(np.zeros((2, 2, 2), dtype=np.int32))


class TestDecoding:

    def test_mixed_payload(self):
        """Test packed, unpacked and empty grids in one payload."""
        grids = [g([[1, 2], [3, 4]]), g([[255]]), np.zeros((0, 0), dtype=np.int32), g([[9, 0, 9]])]
        decoded = decode_grids(encode_grids(grids))
        assert len(decoded) == len(grids)
        for original, result in zip(grids, decoded):
            assert result.shape == original.shape
            np.testing.assert_array_equal(result, original)

    def test_bad_magic(self):
        """Test a wrong magic number raises error."""
        payload = bytearray(encode_grids([g([[1]])]))
        payload[0] ^= 0xFF
        with pytest.raises(GridFormatError, match="magic"):
            decode_grids(bytes(payload))

    def test_bad_version(self):
        """Test an unknown version raises error."""
        payload = bytearray(encode_grids([g([[1]])]))
        payload[4] = 2
        with pytest.raises(GridFormatError, match="version"):
            decode_grids(bytes(payload))

    def test_truncated(self):
        """Test a truncated payload raises error."""
        payload = encode_grids([g([[1, 2, 3, 4, 5]])])
        with pytest.raises(GridFormatError):
            decode_grids(payload[:-1])
        with pytest.raises(GridFormatError):
            decode_grids(payload[:3])
