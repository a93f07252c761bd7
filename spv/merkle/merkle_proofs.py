"""
Merkle Proofs Convenience Wrappers
Class-based interfaces and batch verification.

This module provides:
- MerkleProver: Generate proofs for leaves
- MerkleVerifier: Verify proofs, singly or in parallel batches

Batch verification fans out over a thread pool. Proof evaluation touches
no shared state, so no coordination is needed between workers.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Sequence

from spv.crypto.hashing import hash_to_str
from spv.merkle.merkle_proof import MerkleProof, calculate_root, verify_merkle_proof
from spv.merkle.merkle_tree import build_merkle_proofs, build_merkle_root
from spv.schemas.errors import SPVException
from spv.schemas.verification import CheckResult, VerificationResult


logger = logging.getLogger(__name__)


def _check_proof(position: int, proof: MerkleProof, reference: Any) -> CheckResult:
    check_id = f"proof[{position}]"
    try:
        verify_merkle_proof(proof, reference)
    except SPVException as e:
        details = dict(e.details)
        details["txid"] = hash_to_str(proof.txid)
        return CheckResult.failed(check_id, e.message, code=e.code, details=details)
    return CheckResult.passed(
        check_id,
        details={"txid": hash_to_str(proof.txid), "index": proof.index},
    )


def verify_merkle_proofs(
    proofs: Sequence[MerkleProof],
    reference: Any = None,
    max_workers: int | None = None,
) -> VerificationResult:
    """
    Verify many proofs, optionally against one shared reference root.

    Args:
        proofs: Proofs to verify
        reference: Root or header applied to every proof (in addition to
            each proof's own target)
        max_workers: Thread pool size; None lets the executor decide,
            1 verifies sequentially

    Returns:
        VerificationResult with one check per proof, in input order
    """
    if max_workers == 1 or len(proofs) <= 1:
        checks = [_check_proof(i, proof, reference) for i, proof in enumerate(proofs)]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            checks = list(pool.map(
                _check_proof,
                range(len(proofs)),
                proofs,
                [reference] * len(proofs),
            ))

    result = VerificationResult.from_checks(checks)
    if not result.ok:
        logger.warning(
            f"{result.failed_count} of {len(checks)} merkle proofs failed verification"
        )
    return result


class MerkleProver:
    """
    Convenience class for generating Merkle proofs.

    Example:
        >>> root, proofs = MerkleProver.prove(leaves, [leaves[1]])
        >>> proofs[0].index
        1
    """

    @staticmethod
    def prove(
        leaves: Sequence[bytes],
        targets: Sequence[bytes],
    ) -> tuple[bytes, list[MerkleProof]]:
        """
        Compute the root and a proof for each target leaf value.

        Raises:
            TreeConstructionException: If leaves is empty or a target is absent
        """
        return build_merkle_proofs(leaves, targets)

    @staticmethod
    def compute_root(leaves: Sequence[bytes]) -> bytes:
        """Compute the Merkle root for a sequence of leaves."""
        return build_merkle_root(leaves)


class MerkleVerifier:
    """
    Convenience class for verifying Merkle proofs.

    Example:
        >>> MerkleVerifier.is_valid(proof, root)
        True
    """

    @staticmethod
    def verify(proof: MerkleProof, reference: Any = None) -> None:
        """
        Verify a proof, raising on failure.

        Raises:
            MerkleVerificationException: If the proof does not verify
        """
        verify_merkle_proof(proof, reference)

    @staticmethod
    def is_valid(proof: MerkleProof, reference: Any = None) -> bool:
        """Return True if the proof verifies, False otherwise."""
        try:
            verify_merkle_proof(proof, reference)
        except SPVException:
            return False
        return True

    @staticmethod
    def calculate_root(proof: MerkleProof) -> bytes:
        return calculate_root(proof)

    @staticmethod
    def verify_all(
        proofs: Sequence[MerkleProof],
        reference: Any = None,
        max_workers: int | None = None,
    ) -> VerificationResult:
        return verify_merkle_proofs(proofs, reference, max_workers)


__all__ = [
    "verify_merkle_proofs",
    "MerkleProver",
    "MerkleVerifier",
]
