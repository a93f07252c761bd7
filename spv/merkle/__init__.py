"""
Merkle Proof Engine
Single-pass tree building with proof extraction, proof codecs and verification.

This module provides:
- MerkleTreeBuilder: Compute a root and proofs for registered txids
- MerkleProof / MerkleNode: Immutable inclusion proof and its path slots
- serialize_proof / deserialize_proof: Binary codec
- proof_to_json / proof_from_json: JSON codec
- calculate_root / verify_merkle_proof: Root reconstruction and verification
- MerkleProver / MerkleVerifier: Convenience classes, batch verification

Usage:
    from spv.merkle import MerkleTreeBuilder, verify_merkle_proof

    builder = MerkleTreeBuilder()
    builder.register_interest(txid)
    for leaf in block_txids:
        builder.feed(leaf)
    root, proofs = builder.finalize()

    proof = proofs[0].with_block_header(header)
    payload = proof.to_bytes()

    # elsewhere
    verify_merkle_proof(MerkleProof.from_bytes(payload))
"""
from .merkle_node import (
    MerkleNode,
    NodeType,
)

from .merkle_proof import (
    MerkleProof,
    TargetType,
    calculate_root,
    reference_root,
    verify_merkle_proof,
)

from .merkle_tree import (
    MerkleTreeBuilder,
    build_merkle_root,
    build_merkle_proofs,
    compute_tree_height,
)

from .proof_codec import (
    JsonMerkleProof,
    serialize_proof,
    deserialize_proof,
    proof_to_json,
    proof_from_json,
)

from .merkle_proofs import (
    MerkleProver,
    MerkleVerifier,
    verify_merkle_proofs,
)


__all__ = [
    # Core types
    "MerkleNode",
    "NodeType",
    "MerkleProof",
    "TargetType",
    "JsonMerkleProof",
    # Tree building
    "MerkleTreeBuilder",
    "build_merkle_root",
    "build_merkle_proofs",
    "compute_tree_height",
    # Codec
    "serialize_proof",
    "deserialize_proof",
    "proof_to_json",
    "proof_from_json",
    # Verification
    "calculate_root",
    "reference_root",
    "verify_merkle_proof",
    "verify_merkle_proofs",
    # Convenience classes
    "MerkleProver",
    "MerkleVerifier",
]
