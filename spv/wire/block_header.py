"""
Block header wire type.

The 80-byte header is the usual reference a verifier holds for a block:
its ``merkle_root`` field is the root every inclusion proof for that
block must reconstruct.

Layout (little-endian):
    version      int32
    prev_block   32 bytes
    merkle_root  32 bytes
    timestamp    uint32
    bits         uint32
    nonce        uint32
"""
from __future__ import annotations

import io
import struct
from dataclasses import dataclass
from typing import BinaryIO

from spv.crypto.hashing import HASH32_SIZE, double_sha256, hash_to_str
from spv.wire.varint import read_exact


BLOCK_HEADER_SIZE = 80

_HEADER_FORMAT = "<i32s32sIII"


@dataclass(frozen=True)
class BlockHeader:
    """
    A block header.

    Attributes:
        version: Block version
        prev_block: Hash of the previous block (internal byte order)
        merkle_root: Root of the block's transaction tree (internal byte order)
        timestamp: Unix timestamp
        bits: Compact difficulty target
        nonce: Proof of work nonce
    """
    version: int = 1
    prev_block: bytes = bytes(HASH32_SIZE)
    merkle_root: bytes = bytes(HASH32_SIZE)
    timestamp: int = 0
    bits: int = 0
    nonce: int = 0

    def __post_init__(self) -> None:
        if len(self.prev_block) != HASH32_SIZE:
            raise ValueError(f"prev_block must be {HASH32_SIZE} bytes")
        if len(self.merkle_root) != HASH32_SIZE:
            raise ValueError(f"merkle_root must be {HASH32_SIZE} bytes")

    def serialize(self) -> bytes:
        """Return the 80-byte wire form."""
        return struct.pack(
            _HEADER_FORMAT,
            self.version,
            bytes(self.prev_block),
            bytes(self.merkle_root),
            self.timestamp,
            self.bits,
            self.nonce,
        )

    @classmethod
    def deserialize(cls, stream: BinaryIO) -> "BlockHeader":
        """Read an 80-byte header from ``stream``."""
        raw = read_exact(stream, BLOCK_HEADER_SIZE, "block_header")
        version, prev_block, merkle_root, timestamp, bits, nonce = struct.unpack(
            _HEADER_FORMAT, raw
        )
        return cls(
            version=version,
            prev_block=prev_block,
            merkle_root=merkle_root,
            timestamp=timestamp,
            bits=bits,
            nonce=nonce,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "BlockHeader":
        """Parse a header from exactly 80 bytes."""
        if len(data) != BLOCK_HEADER_SIZE:
            raise ValueError(
                f"Block header must be {BLOCK_HEADER_SIZE} bytes, got {len(data)}"
            )
        return cls.deserialize(io.BytesIO(data))

    def block_hash(self) -> bytes:
        """Double SHA-256 of the serialized header."""
        return double_sha256(self.serialize())

    def __str__(self) -> str:
        return hash_to_str(self.block_hash())


__all__ = [
    "BLOCK_HEADER_SIZE",
    "BlockHeader",
]
