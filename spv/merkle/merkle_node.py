"""
Merkle proof path nodes.

Each level of a proof path holds one sibling slot. Only HASH slots carry
bytes; DUPLICATE and KNOWN slots are reconstructed by the verifier.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from spv.crypto.hashing import HASH32_SIZE, hash_to_str


class NodeType(IntEnum):
    """Wire tag of a proof path node."""

    HASH = 0
    """Explicit 32-byte sibling hash."""

    DUPLICATE = 1
    """Sibling equals this branch's own value (odd level, last node)."""

    KNOWN = 2
    """Sibling the recipient already holds; not transmitted."""


@dataclass(frozen=True)
class MerkleNode:
    """
    One sibling slot in a Merkle proof path.

    Attributes:
        kind: Node type tag
        value: Sibling hash (internal byte order), only for NodeType.HASH
    """
    kind: NodeType
    value: bytes | None = None

    def __post_init__(self) -> None:
        if self.kind == NodeType.HASH:
            if self.value is None or len(self.value) != HASH32_SIZE:
                raise ValueError(f"HASH node requires a {HASH32_SIZE}-byte value")
        elif self.value is not None:
            raise ValueError(f"{self.kind.name} node cannot carry a value")

    @classmethod
    def from_hash(cls, value: bytes) -> "MerkleNode":
        return cls(NodeType.HASH, bytes(value))

    @classmethod
    def duplicate(cls) -> "MerkleNode":
        return cls(NodeType.DUPLICATE)

    @classmethod
    def known(cls) -> "MerkleNode":
        return cls(NodeType.KNOWN)

    def __str__(self) -> str:
        if self.value is not None:
            return hash_to_str(self.value)
        return self.kind.name.lower()


__all__ = [
    "NodeType",
    "MerkleNode",
]
