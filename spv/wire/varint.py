"""
Compact-size variable length integers.

Encoding (little-endian):
    value < 0xfd          1 byte
    value <= 0xffff       0xfd + uint16
    value <= 0xffffffff   0xfe + uint32
    otherwise             0xff + uint64

Reading enforces the canonical (shortest) form.
"""
from __future__ import annotations

import io
import struct
from typing import BinaryIO

from spv.schemas.errors import ErrorCodes, ProofDecodeException


MAX_VAR_INT = 0xFFFFFFFFFFFFFFFF

# discriminant -> (struct format, payload size, minimum canonical value)
_WIDE_FORMS: dict[int, tuple[str, int, int]] = {
    0xFD: ("<H", 2, 0xFD),
    0xFE: ("<I", 4, 0x10000),
    0xFF: ("<Q", 8, 0x100000000),
}


def read_exact(stream: BinaryIO, size: int, field: str) -> bytes:
    """
    Read exactly ``size`` bytes or fail with a decode error.

    Args:
        stream: Binary stream to read from
        size: Number of bytes required
        field: Name of the field being read (for error reporting)
    """
    available = _remaining(stream)
    if available is not None and size > available:
        data = b""
        got = available
    else:
        data = stream.read(size)
        got = len(data)
    if got != size:
        raise ProofDecodeException(
            f"Truncated input reading {field}: wanted {size} bytes, got {got}",
            code=ErrorCodes.TRUNCATED_INPUT,
            field_path=field,
        )
    return data


def _remaining(stream: BinaryIO) -> int | None:
    """Bytes left in a seekable stream, None when the stream cannot tell."""
    if not stream.seekable():
        return None
    position = stream.tell()
    end = stream.seek(0, io.SEEK_END)
    stream.seek(position)
    return end - position


def var_int_size(value: int) -> int:
    """Return the encoded size in bytes of ``value``."""
    if value < 0xFD:
        return 1
    if value <= 0xFFFF:
        return 3
    if value <= 0xFFFFFFFF:
        return 5
    return 9


def serialize_var_int(value: int) -> bytes:
    """Encode ``value`` as a compact-size integer."""
    if value < 0 or value > MAX_VAR_INT:
        raise ValueError(f"Varint value out of range: {value}")
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", value)
    if value <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", value)
    return b"\xff" + struct.pack("<Q", value)


def write_var_int(stream: BinaryIO, value: int) -> None:
    """Write ``value`` to ``stream`` as a compact-size integer."""
    stream.write(serialize_var_int(value))


def read_var_int(stream: BinaryIO, field: str = "varint") -> int:
    """
    Read a compact-size integer from ``stream``.

    Raises:
        ProofDecodeException: On truncated input or a non-canonical encoding
    """
    discriminant = read_exact(stream, 1, field)[0]
    if discriminant < 0xFD:
        return discriminant

    fmt, size, minimum = _WIDE_FORMS[discriminant]
    (value,) = struct.unpack(fmt, read_exact(stream, size, field))
    if value < minimum:
        raise ProofDecodeException(
            f"Non-canonical varint for {field}: {value} encoded with "
            f"discriminant 0x{discriminant:02x} (minimum {minimum})",
            code=ErrorCodes.NON_CANONICAL_VARINT,
            field_path=field,
        )
    return value


__all__ = [
    "MAX_VAR_INT",
    "read_exact",
    "var_int_size",
    "serialize_var_int",
    "write_var_int",
    "read_var_int",
]
