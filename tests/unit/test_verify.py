"""
Proof Verification Unit Tests
Tests for spv/merkle/merkle_proof.py (calculate_root, verify_merkle_proof)
and spv/merkle/merkle_proofs.py (batch verification)

Covers:
1. Valid proofs verify against header, merkle root and explicit references
2. Tampered siblings, subjects and indices fail with ROOT_MISMATCH
3. Block hash targets alone are not verifiable
4. KNOWN slots resolved from caller-supplied values
5. Malformed paths (right-branch duplicates, duplicated subtrees, bad index)
6. Batch verification reports per-proof checks in input order
7. A single flipped byte anywhere in a serialized proof is caught
"""
import logging
from dataclasses import replace
from types import SimpleNamespace

import pytest

from spv.crypto.hashing import hash_concat, hash_to_str
from spv.merkle import (
    MerkleNode,
    MerkleProof,
    MerkleVerifier,
    build_merkle_proofs,
    calculate_root,
    deserialize_proof,
    reference_root,
    verify_merkle_proof,
    verify_merkle_proofs,
)
from spv.schemas.errors import (
    ErrorCodes,
    MerkleVerificationException,
    ProofDecodeException,
)

from fixtures import make_header, make_tree_proofs, make_txids


def _verify_error(proof, reference=None, known_nodes=None) -> MerkleVerificationException:
    with pytest.raises(MerkleVerificationException) as exc_info:
        verify_merkle_proof(proof, reference, known_nodes)
    return exc_info.value


def _replace_node(proof: MerkleProof, level: int, node: MerkleNode) -> MerkleProof:
    nodes = list(proof.nodes)
    nodes[level] = node
    return replace(proof, nodes=tuple(nodes))


def _serialized_tree_proof() -> bytes:
    _, root, proofs = make_tree_proofs(13, [5], seed=13)
    return proofs[0].with_merkle_root(root).to_bytes()


_SERIALIZED = _serialized_tree_proof()


class TestValidProofs:
    """Tests for proofs that should verify."""

    def test_header_target(self, header_proof):
        proof, _ = header_proof
        proof.verify()

    def test_merkle_root_target(self, odd_tree):
        _, root, proofs = odd_tree
        for proof in proofs:
            verify_merkle_proof(proof.with_merkle_root(root))

    def test_explicit_root_reference(self, odd_tree):
        _, root, proofs = odd_tree
        for proof in proofs:
            verify_merkle_proof(proof, root)

    def test_explicit_header_reference(self, header_proof):
        proof, header = header_proof
        verify_merkle_proof(proof.with_block_hash(header.block_hash()), header)

    def test_reference_with_root_attribute(self, odd_tree):
        _, root, proofs = odd_tree
        verify_merkle_proof(proofs[0], SimpleNamespace(root=root))

    def test_single_leaf(self):
        leaf = make_txids(1)[0]
        verify_merkle_proof(MerkleProof(index=0, txid=leaf, merkle_root=leaf))

    def test_block_hash_with_reference(self, header_proof):
        proof, header = header_proof
        proof = proof.with_block_hash(header.block_hash())
        proof.verify(header.merkle_root)

    def test_verifier_is_valid(self, odd_tree):
        _, root, proofs = odd_tree
        assert MerkleVerifier.is_valid(proofs[6], root)
        assert not MerkleVerifier.is_valid(proofs[6], make_txids(1, seed=77)[0])
        assert MerkleVerifier.calculate_root(proofs[6]) == root


class TestTamperDetection:
    """Tests for altered proofs."""

    def test_tampered_sibling(self, header_proof):
        proof, _ = header_proof
        tampered = _replace_node(proof, 1, MerkleNode.from_hash(make_txids(1, seed=50)[0]))
        error = _verify_error(tampered)

        assert error.code == ErrorCodes.ROOT_MISMATCH
        assert error.details["source"] == "block header"
        assert error.details["leaf_index"] == proof.index

    def test_tampered_subject(self, header_proof):
        proof, _ = header_proof
        tampered = replace(proof, txid=make_txids(1, seed=51)[0])
        assert _verify_error(tampered).code == ErrorCodes.ROOT_MISMATCH

    def test_tampered_index(self, header_proof):
        proof, _ = header_proof
        tampered = replace(proof, index=proof.index ^ 1)
        assert _verify_error(tampered).code == ErrorCodes.ROOT_MISMATCH

    def test_wrong_merkle_root_target(self, odd_tree):
        _, root, proofs = odd_tree
        proof = proofs[2].with_merkle_root(make_txids(1, seed=52)[0])
        error = _verify_error(proof)

        assert error.code == ErrorCodes.ROOT_MISMATCH
        assert error.details["source"] == "merkle root"
        assert error.details["calculated"] == hash_to_str(root)

    def test_reference_disagrees_with_target(self, header_proof):
        proof, _ = header_proof
        error = _verify_error(proof, make_txids(1, seed=53)[0])

        assert error.code == ErrorCodes.ROOT_MISMATCH
        assert error.details["source"] == "reference"

    def test_mismatch_is_logged(self, header_proof, caplog):
        proof, _ = header_proof
        tampered = replace(proof, txid=make_txids(1, seed=54)[0])

        with caplog.at_level(logging.WARNING, logger="spv.merkle.merkle_proof"):
            with pytest.raises(MerkleVerificationException):
                tampered.verify()

        assert "Merkle root mismatch" in caplog.text


class TestNotVerifiable:
    """Tests for proofs with no usable reference root."""

    def test_block_hash_only(self, fixture_proof_bytes):
        proof = MerkleProof.from_bytes(fixture_proof_bytes)
        assert _verify_error(proof).code == ErrorCodes.NOT_VERIFIABLE

    def test_no_target(self, odd_tree):
        _, _, proofs = odd_tree
        assert _verify_error(proofs[0]).code == ErrorCodes.NOT_VERIFIABLE

    def test_reference_without_root(self, odd_tree):
        _, _, proofs = odd_tree
        error = _verify_error(proofs[0], SimpleNamespace(height=5))
        assert error.code == ErrorCodes.NOT_VERIFIABLE

    def test_reference_root_wrong_size(self):
        with pytest.raises(MerkleVerificationException) as exc_info:
            reference_root(b"\x00" * 16)
        assert exc_info.value.code == ErrorCodes.NOT_VERIFIABLE

    def test_reference_root_from_header(self):
        header = make_header(bytes(range(32)))
        assert reference_root(header) == bytes(range(32))


class TestKnownNodes:
    """Tests for KNOWN slots."""

    def test_known_node_supplied(self, header_proof):
        proof, _ = header_proof
        sibling = proof.nodes[2].value
        partial = _replace_node(proof, 2, MerkleNode.known())

        verify_merkle_proof(partial, known_nodes={2: sibling})
        assert calculate_root(partial, {2: sibling}) == calculate_root(proof)

    def test_known_node_missing(self, header_proof):
        proof, _ = header_proof
        partial = _replace_node(proof, 2, MerkleNode.known())
        error = _verify_error(partial)

        assert error.code == ErrorCodes.MERKLE_PROOF_INVALID
        assert error.details["level"] == 2

    def test_known_node_wrong_value(self, header_proof):
        proof, _ = header_proof
        partial = _replace_node(proof, 0, MerkleNode.known())
        error = _verify_error(partial, known_nodes={0: make_txids(1, seed=55)[0]})
        assert error.code == ErrorCodes.ROOT_MISMATCH


class TestMalformedPaths:
    """Tests for paths that cannot be evaluated."""

    def test_duplicate_on_right_branch(self):
        txid = make_txids(1)[0]
        proof = MerkleProof(index=1, txid=txid, nodes=(MerkleNode.duplicate(),))

        with pytest.raises(MerkleVerificationException) as exc_info:
            calculate_root(proof)
        assert exc_info.value.code == ErrorCodes.MERKLE_PROOF_INVALID

    def test_duplicate_on_left_branch(self):
        txid = make_txids(1)[0]
        proof = MerkleProof(index=0, txid=txid, nodes=(MerkleNode.duplicate(),))
        assert calculate_root(proof) == hash_concat(txid, txid)

    def test_duplicated_subtree_forgery_rejected(self):
        # [a, b, c] and [a, b, c, c] share a root; position 3 must not prove
        a, b, c = make_txids(3, seed=56)
        root, _ = build_merkle_proofs([a, b, c], [])
        forged = MerkleProof(
            index=3,
            txid=c,
            nodes=(MerkleNode.from_hash(c), MerkleNode.from_hash(hash_concat(a, b))),
            merkle_root=root,
        )

        error = _verify_error(forged)
        assert error.code == ErrorCodes.MERKLE_PROOF_INVALID
        assert error.details["level"] == 0

    @pytest.mark.parametrize("index,height", [(1, 0), (2, 1), (8, 3), (100, 6)])
    def test_index_out_of_range(self, index, height):
        nodes = tuple(MerkleNode.from_hash(h) for h in make_txids(height, seed=57))
        proof = MerkleProof(index=index, txid=make_txids(1)[0], nodes=nodes)

        with pytest.raises(MerkleVerificationException) as exc_info:
            calculate_root(proof)
        assert exc_info.value.code == ErrorCodes.MERKLE_PROOF_INVALID


class TestBatchVerification:
    """Tests for verify_merkle_proofs."""

    @pytest.mark.parametrize("workers", [None, 1, 4])
    def test_all_valid(self, odd_tree, workers):
        _, root, proofs = odd_tree
        result = verify_merkle_proofs(proofs, root, max_workers=workers)

        assert result.ok
        assert result.passed_count == len(proofs)
        assert result.error is None
        assert [c.check_id for c in result.checks] == [f"proof[{i}]" for i in range(7)]

    @pytest.mark.parametrize("workers", [1, 4])
    def test_one_tampered(self, odd_tree, workers):
        _, root, proofs = odd_tree
        proofs = list(proofs)
        proofs[3] = replace(proofs[3], txid=make_txids(1, seed=58)[0])

        result = verify_merkle_proofs(proofs, root, max_workers=workers)

        assert not result.ok
        assert result.passed_count == 6
        assert result.failed_count == 1
        failed = result.get_failed_checks()[0]
        assert failed.check_id == "proof[3]"
        assert failed.code == ErrorCodes.ROOT_MISMATCH
        assert result.error.code == ErrorCodes.ROOT_MISMATCH
        assert result.error.details["check_id"] == "proof[3]"

    def test_unverifiable_reported(self, odd_tree):
        _, _, proofs = odd_tree
        result = MerkleVerifier.verify_all(proofs[:2])

        assert not result.ok
        assert all(c.code == ErrorCodes.NOT_VERIFIABLE for c in result.checks)

    def test_empty_batch(self):
        result = verify_merkle_proofs([])
        assert result.ok
        assert result.checks == []


class TestByteFlips:
    """Every single-byte change to a serialized proof must be caught."""

    def test_untouched_proof_verifies(self):
        deserialize_proof(_SERIALIZED).verify()

    @pytest.mark.parametrize("offset", range(len(_SERIALIZED)))
    def test_flipped_byte_rejected(self, offset):
        data = bytearray(_SERIALIZED)
        data[offset] ^= 0xFF

        with pytest.raises((ProofDecodeException, MerkleVerificationException)) as exc_info:
            deserialize_proof(bytes(data)).verify()

        if isinstance(exc_info.value, MerkleVerificationException):
            assert exc_info.value.code in (
                ErrorCodes.ROOT_MISMATCH,
                ErrorCodes.MERKLE_PROOF_INVALID,
            )
