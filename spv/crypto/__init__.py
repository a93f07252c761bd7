"""
Core cryptographic utilities.

Provides the double SHA-256 hasher and Hash32 text helpers.
"""
from .hashing import (
    HASH32_SIZE,
    sha256,
    double_sha256,
    hash_concat,
    is_hash32,
    hash_to_str,
    hash_from_str,
    to_hex,
    from_hex,
)

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
