"""
Hashing Utilities
Double SHA-256 hashing and Hash32 text conversion for Merkle commitments.

This module provides:
- SHA-256 and double SHA-256 hashing for raw bytes
- Parent hashing for Merkle nodes
- Conversion between Hash32 bytes and their display hex form

Byte Order Notes:
- Hash32 values are kept as 32 raw bytes in internal order. This is the
  order written on the wire and concatenated when hashing parents.
- The text ("display") form is the hex of the reversed bytes, the
  convention used by block explorers and the JSON proof format.
"""
from __future__ import annotations

import hashlib


HASH32_SIZE = 32


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Args:
        data: Raw bytes to hash

    Returns:
        32-byte SHA-256 digest

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def double_sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 of the SHA-256 of raw bytes.

    This is the digest used for transaction ids, block hashes and
    Merkle tree nodes.

    Args:
        data: Raw bytes to hash

    Returns:
        32-byte digest
    """
    return sha256(sha256(data))


def hash_concat(left: bytes, right: bytes) -> bytes:
    """
    Hash the concatenation of two child hashes.

    parent = double_sha256(left + right)

    Args:
        left: Left child hash (internal byte order)
        right: Right child hash (internal byte order)

    Returns:
        32-byte parent hash
    """
    return double_sha256(left + right)


def is_hash32(value: object) -> bool:
    """Return True if value is a 32-byte bytes object."""
    return isinstance(value, (bytes, bytearray)) and len(value) == HASH32_SIZE


def hash_to_str(value: bytes) -> str:
    """
    Convert a Hash32 to its display hex form (reversed byte order).

    Example:
        >>> hash_to_str(bytes(31) + b"\\x01")
        '0100000000000000000000000000000000000000000000000000000000000000'
    """
    if not is_hash32(value):
        raise ValueError(f"Hash32 must be {HASH32_SIZE} bytes, got {len(value)}")
    return bytes(value)[::-1].hex()


def hash_from_str(text: str) -> bytes:
    """
    Parse a display hex string into Hash32 bytes (internal order).

    Raises:
        ValueError: If the string is not exactly 64 hex characters
    """
    if len(text) != HASH32_SIZE * 2:
        raise ValueError(
            f"Hash32 string must be {HASH32_SIZE * 2} hex characters, got {len(text)}"
        )
    try:
        raw = bytes.fromhex(text)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in hash string: {e}") from e
    # fromhex accepts whitespace between bytes
    if len(raw) != HASH32_SIZE:
        raise ValueError("Hash32 string must contain only hex characters")
    return raw[::-1]


def to_hex(data: bytes) -> str:
    """Convert raw bytes to plain hex (no reversal, no prefix)."""
    return data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert plain hex to raw bytes.

    Raises:
        ValueError: If the string has odd length or invalid characters
    """
    if len(hex_string) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length, got length {len(hex_string)}"
        )
    try:
        raw = bytes.fromhex(hex_string)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e
    if len(raw) * 2 != len(hex_string):
        raise ValueError("Hex string must contain only hex characters")
    return raw


__all__ = [
    "HASH32_SIZE",
    "sha256",
    "double_sha256",
    "hash_concat",
    "is_hash32",
    "hash_to_str",
    "hash_from_str",
    "to_hex",
    "from_hex",
]
