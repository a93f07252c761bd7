"""
Merkle Proof Type, Root Calculation and Verification

This module provides:
- MerkleProof: immutable inclusion proof for one transaction
- calculate_root: replay a proof path to reconstruct the tree root
- verify_merkle_proof: compare the reconstructed root with a trusted reference

Path Rules (Hard Contracts):
1. nodes[0] is the leaf's immediate sibling, nodes[-1] is the sibling one
   level below the root; len(nodes) is the tree height.
2. At level L the branch is a left child when (index >> L) is even:
   parent = H(current + sibling), otherwise parent = H(sibling + current).
3. A DUPLICATE slot stands for the branch's own value and is only valid on
   a left child.
4. H is double SHA-256 over internal byte order hashes.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Sequence

from spv.crypto.hashing import (
    HASH32_SIZE,
    double_sha256,
    hash_concat,
    hash_to_str,
    is_hash32,
)
from spv.merkle.merkle_node import MerkleNode, NodeType
from spv.schemas.errors import ErrorCodes, MerkleVerificationException
from spv.wire.block_header import BlockHeader


logger = logging.getLogger(__name__)


class TargetType(str, Enum):
    """What a proof's target field refers to."""

    BLOCK_HASH = "hash"
    HEADER = "header"
    MERKLE_ROOT = "merkleRoot"


@dataclass(frozen=True)
class MerkleProof:
    """
    An inclusion proof for a single transaction in a block's Merkle tree.

    Attributes:
        index: 0-based position of the transaction in the block
        txid: Transaction id being proven (internal byte order)
        nodes: Sibling slots from the leaf level up to below the root
        tx: Optional raw transaction, neither empty nor 32 bytes long; when
            set, txid is its double SHA-256
        block_header: Target as a full block header
        merkle_root: Target as a bare Merkle root
        block_hash: Target as a block hash (identifies, but cannot verify)
    """
    index: int
    txid: bytes
    nodes: tuple[MerkleNode, ...] = field(default_factory=tuple)
    tx: bytes | None = None
    block_header: BlockHeader | None = None
    merkle_root: bytes | None = None
    block_hash: bytes | None = None

    def __post_init__(self) -> None:
        """Validate proof structure."""
        if self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")
        if not is_hash32(self.txid):
            raise ValueError(f"txid must be {HASH32_SIZE} bytes")
        object.__setattr__(self, "txid", bytes(self.txid))
        object.__setattr__(self, "nodes", tuple(self.nodes))
        for node in self.nodes:
            if not isinstance(node, MerkleNode):
                raise TypeError(f"Proof nodes must be MerkleNode, got {type(node).__name__}")

        if self.tx is not None:
            # A 32-byte transaction would read back as a txid from JSON
            if len(self.tx) in (0, HASH32_SIZE):
                raise ValueError(f"Raw transaction cannot be {len(self.tx)} bytes long")
            if double_sha256(self.tx) != self.txid:
                raise ValueError("txid does not match the hash of the attached transaction")

        targets = [
            t for t in (self.block_header, self.merkle_root, self.block_hash)
            if t is not None
        ]
        if len(targets) > 1:
            raise ValueError("A proof carries at most one target")
        for name in ("merkle_root", "block_hash"):
            value = getattr(self, name)
            if value is not None and not is_hash32(value):
                raise ValueError(f"{name} must be {HASH32_SIZE} bytes")

    @classmethod
    def for_transaction(
        cls,
        tx: bytes,
        index: int,
        nodes: Sequence[MerkleNode] = (),
        **target: Any,
    ) -> "MerkleProof":
        """Build a proof whose subject is a full transaction."""
        return cls(index=index, txid=double_sha256(tx), nodes=tuple(nodes), tx=tx, **target)

    @property
    def height(self) -> int:
        """Number of tree levels below the root."""
        return len(self.nodes)

    @property
    def target_type(self) -> TargetType | None:
        if self.block_header is not None:
            return TargetType.HEADER
        if self.merkle_root is not None:
            return TargetType.MERKLE_ROOT
        if self.block_hash is not None:
            return TargetType.BLOCK_HASH
        return None

    def _with_target(self, **target: Any) -> "MerkleProof":
        cleared = {"block_header": None, "merkle_root": None, "block_hash": None}
        cleared.update(target)
        return replace(self, **cleared)

    def with_block_header(self, header: BlockHeader) -> "MerkleProof":
        return self._with_target(block_header=header)

    def with_merkle_root(self, root: bytes) -> "MerkleProof":
        return self._with_target(merkle_root=bytes(root))

    def with_block_hash(self, block_hash: bytes) -> "MerkleProof":
        return self._with_target(block_hash=bytes(block_hash))

    def with_tx(self, tx: bytes) -> "MerkleProof":
        """Attach the transaction pre-image of this proof's txid."""
        return replace(self, tx=bytes(tx))

    def calculate_root(self, known_nodes: Mapping[int, bytes] | None = None) -> bytes:
        return calculate_root(self, known_nodes)

    def verify(
        self,
        reference: Any = None,
        known_nodes: Mapping[int, bytes] | None = None,
    ) -> None:
        verify_merkle_proof(self, reference, known_nodes)

    # Codec shortcuts. The codec module imports this one, hence the local imports.

    def to_bytes(self) -> bytes:
        from spv.merkle.proof_codec import serialize_proof
        return serialize_proof(self)

    @classmethod
    def from_bytes(cls, data: bytes) -> "MerkleProof":
        from spv.merkle.proof_codec import deserialize_proof
        return deserialize_proof(data)

    def to_json(self) -> str:
        from spv.merkle.proof_codec import proof_to_json
        return proof_to_json(self)

    @classmethod
    def from_json(cls, data: str | bytes) -> "MerkleProof":
        from spv.merkle.proof_codec import proof_from_json
        return proof_from_json(data)

    def __str__(self) -> str:
        lines = [f"Tx Index : {self.index}", f"TxID : {hash_to_str(self.txid)}"]
        if self.block_header is not None:
            lines.append(f"Header : {self.block_header}")
        elif self.merkle_root is not None:
            lines.append(f"Merkle Root : {hash_to_str(self.merkle_root)}")
        elif self.block_hash is not None:
            lines.append(f"Block Hash : {hash_to_str(self.block_hash)}")
        lines.append(f"{len(self.nodes)} Nodes")
        lines.extend(f"  {node}" for node in self.nodes)
        return "\n".join(lines)


def calculate_root(
    proof: MerkleProof,
    known_nodes: Mapping[int, bytes] | None = None,
) -> bytes:
    """
    Reconstruct the Merkle root from a proof path.

    Args:
        proof: Proof to evaluate
        known_nodes: Sibling values for KNOWN slots, keyed by level

    Returns:
        32-byte root (internal byte order)

    Raises:
        MerkleVerificationException: If the path cannot be evaluated
    """
    height = len(proof.nodes)
    if proof.index >> height:
        raise MerkleVerificationException(
            f"Index {proof.index} is out of range for a proof of height {height}",
            leaf_index=proof.index,
        )

    current = proof.txid
    for level, node in enumerate(proof.nodes):
        is_left = (proof.index >> level) % 2 == 0

        if node.kind == NodeType.DUPLICATE:
            if not is_left:
                raise MerkleVerificationException(
                    f"Duplicate node on a right branch at level {level}",
                    leaf_index=proof.index,
                    details={"level": level},
                )
            sibling = current
        elif node.kind == NodeType.HASH:
            sibling = node.value
        elif node.kind == NodeType.KNOWN:
            sibling = (known_nodes or {}).get(level)
            if sibling is None or not is_hash32(sibling):
                raise MerkleVerificationException(
                    f"No known sibling supplied for level {level}",
                    leaf_index=proof.index,
                    details={"level": level},
                )
        else:
            raise MerkleVerificationException(
                f"Unknown node type {node.kind!r} at level {level}",
                leaf_index=proof.index,
            )

        if is_left:
            current = hash_concat(current, sibling)
        else:
            # A right child can never equal its left sibling: that shape only
            # arises from duplicated subtrees.
            if sibling == current:
                raise MerkleVerificationException(
                    f"Right branch duplicates its left sibling at level {level}",
                    leaf_index=proof.index,
                    details={"level": level},
                )
            current = hash_concat(sibling, current)

    return current


def reference_root(reference: Any) -> bytes:
    """
    Extract a Merkle root from a reference.

    Accepts a raw 32-byte root or any header-like object exposing a
    ``merkle_root`` or ``root`` attribute.
    """
    if isinstance(reference, (bytes, bytearray)):
        root = bytes(reference)
    else:
        root = getattr(reference, "merkle_root", None)
        if root is None:
            root = getattr(reference, "root", None)
    if root is None or not is_hash32(root):
        raise MerkleVerificationException(
            f"Reference of type {type(reference).__name__} does not expose a 32-byte root",
            code=ErrorCodes.NOT_VERIFIABLE,
        )
    return bytes(root)


def verify_merkle_proof(
    proof: MerkleProof,
    reference: Any = None,
    known_nodes: Mapping[int, bytes] | None = None,
) -> None:
    """
    Verify a proof against every reference root available.

    References are the explicit ``reference`` argument, the attached block
    header's merkle root and the attached merkle root. A block hash target
    alone is not a root.

    Raises:
        MerkleVerificationException: NOT_VERIFIABLE when no reference root is
            available, MERKLE_PROOF_INVALID when the path cannot be evaluated,
            ROOT_MISMATCH when a reference disagrees with the path.
    """
    references: list[tuple[str, bytes]] = []
    if reference is not None:
        references.append(("reference", reference_root(reference)))
    if proof.block_header is not None:
        references.append(("block header", proof.block_header.merkle_root))
    if proof.merkle_root is not None:
        references.append(("merkle root", proof.merkle_root))

    if not references:
        raise MerkleVerificationException(
            "Not verifiable: no merkle root or block header available",
            code=ErrorCodes.NOT_VERIFIABLE,
            leaf_index=proof.index,
        )

    root = calculate_root(proof, known_nodes)

    for source, expected in references:
        if root != expected:
            logger.warning(
                f"Merkle root mismatch for {hash_to_str(proof.txid)} against {source}: "
                f"calculated {hash_to_str(root)}, expected {hash_to_str(expected)}"
            )
            raise MerkleVerificationException(
                f"Wrong merkle root ({source})",
                code=ErrorCodes.ROOT_MISMATCH,
                leaf_index=proof.index,
                details={
                    "source": source,
                    "calculated": hash_to_str(root),
                    "expected": hash_to_str(expected),
                },
            )


__all__ = [
    "TargetType",
    "MerkleProof",
    "calculate_root",
    "reference_root",
    "verify_merkle_proof",
]
