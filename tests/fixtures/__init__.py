"""
Test fixtures package for Merkle proof tests.

This package provides the interoperability vector and factory functions.

Usage:
    from fixtures import make_tree_proofs, FIXTURE_PROOF_HEX

    def test_something():
        leaves, root, proofs = make_tree_proofs(10, [3, 7])
"""

from .proof_fixtures import (
    FIXTURE_NODES,
    FIXTURE_PROOF_HEX,
    FIXTURE_PROOF_JSON,
    FIXTURE_TARGET,
    FIXTURE_TXID,
    compact_json,
    make_header,
    make_tree_proofs,
    make_txids,
    naive_merkle_root,
)

__all__ = [
    "FIXTURE_NODES",
    "FIXTURE_PROOF_HEX",
    "FIXTURE_PROOF_JSON",
    "FIXTURE_TARGET",
    "FIXTURE_TXID",
    "compact_json",
    "make_header",
    "make_tree_proofs",
    "make_txids",
    "naive_merkle_root",
]
