"""
Merkle Tree Builder
Incremental Merkle root computation with simultaneous proof extraction.

This module provides:
- MerkleTreeBuilder: single-pass builder producing the root plus one
  MerkleProof per registered transaction id
- build_merkle_root: root of a complete leaf sequence
- build_merkle_proofs: root and proofs for a complete leaf sequence

Canonical Commitment Rules (Hard Contracts):
1. Leaves are fed in block order; position = feed order starting at 0.
2. Parent hashing: parent = double_sha256(left + right).
3. Padding rule: an odd level pairs its last node with itself.
4. Single leaf: root = leaf, proof path is empty.
5. Empty tree: an error, never a zero hash.

Builder Notes:
- Pairs are hashed as soon as both children exist, so each level only
  keeps its pending (unpaired) node. Memory is O(log n) plus the open
  proof accumulators.
- Targets are matched by value. Only leaves fed after registration can
  match, and the first matching occurrence wins.
- Open proofs are indexed by (level, position), so each pair touches only
  the proofs passing through it.
- A matched leaf whose branch is a right child equal to its left sibling
  (a repeat of an earlier subtree) has no valid proof: a verifier cannot
  tell it from a duplicated-subtree forgery. finalize() rejects the tree
  with DUPLICATE_SUBTREE instead of returning such a proof.
- A builder is single-use and single-threaded. Proofs it returns are
  immutable and safe to evaluate concurrently.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from spv.crypto.hashing import HASH32_SIZE, hash_concat, hash_to_str, is_hash32
from spv.merkle.merkle_node import MerkleNode
from spv.merkle.merkle_proof import MerkleProof
from spv.schemas.errors import ErrorCodes, TreeConstructionException


logger = logging.getLogger(__name__)


@dataclass
class _Level:
    """One level of the tree: nodes seen so far and the unpaired last one."""
    count: int = 0
    pending: bytes | None = None


@dataclass
class _ProofAccumulator:
    """Open proof for one registered txid."""
    txid: bytes
    index: int = -1
    level: int = 0
    position: int = 0
    nodes: list[MerkleNode] = field(default_factory=list)
    # Level at which the branch met an identical left sibling
    conflict_level: int | None = None

    def add(self, node: MerkleNode) -> None:
        self.nodes.append(node)
        self.level += 1
        self.position //= 2

    def to_proof(self) -> MerkleProof:
        return MerkleProof(index=self.index, txid=self.txid, nodes=tuple(self.nodes))


class MerkleTreeBuilder:
    """
    Builds a Merkle tree from streamed leaves and extracts inclusion proofs.

    Example:
        >>> builder = MerkleTreeBuilder()
        >>> builder.register_interest(txids[3])
        >>> for txid in txids:
        ...     builder.feed(txid)
        >>> root, proofs = builder.finalize()
        >>> proofs[0].calculate_root() == root
        True
    """

    def __init__(self, targets: Iterable[bytes] = ()) -> None:
        self._levels: list[_Level] = []
        self._count = 0
        self._finalized = False
        # Registration order, and unmatched targets keyed by value
        self._proofs: list[_ProofAccumulator] = []
        self._waiting: dict[bytes, _ProofAccumulator] = {}
        self._registered: set[bytes] = set()
        # Matched accumulators keyed by the (level, position) they occupy
        self._climbing: dict[tuple[int, int], list[_ProofAccumulator]] = {}

        for txid in targets:
            self.register_interest(txid)

    @property
    def leaf_count(self) -> int:
        """Number of leaves fed so far."""
        return self._count

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def _check_open(self, operation: str) -> None:
        if self._finalized:
            raise TreeConstructionException(
                f"Cannot {operation}: tree builder already finalized",
                code=ErrorCodes.BUILDER_FINALIZED,
            )

    def register_interest(self, txid: bytes) -> None:
        """
        Request a proof for the next fed leaf equal to ``txid``.

        Proofs are returned by finalize() in registration order.

        Raises:
            TreeConstructionException: If txid is already registered or the
                builder is finalized
        """
        self._check_open("register interest")
        if not is_hash32(txid):
            raise ValueError(f"txid must be {HASH32_SIZE} bytes")
        txid = bytes(txid)
        if txid in self._registered:
            raise TreeConstructionException(
                f"Duplicate registration for {hash_to_str(txid)}",
                code=ErrorCodes.DUPLICATE_TARGET,
                details={"txid": hash_to_str(txid)},
            )

        accumulator = _ProofAccumulator(txid=txid)
        self._proofs.append(accumulator)
        self._registered.add(txid)
        self._waiting[txid] = accumulator

    def feed(self, leaf: bytes) -> None:
        """
        Append ``leaf`` at the next position of the bottom level.

        Raises:
            TreeConstructionException: If the builder is finalized
        """
        self._check_open("feed")
        if not is_hash32(leaf):
            raise ValueError(f"Leaf must be {HASH32_SIZE} bytes")
        leaf = bytes(leaf)

        accumulator = self._waiting.pop(leaf, None)
        if accumulator is not None:
            accumulator.index = self._count
            accumulator.position = self._count
            self._climbing.setdefault((0, self._count), []).append(accumulator)
        self._count += 1

        node = leaf
        depth = 0
        while True:
            if depth == len(self._levels):
                self._levels.append(_Level())
            level = self._levels[depth]

            if level.count % 2 == 0:
                # Left child: wait for its sibling.
                level.pending = node
                level.count += 1
                return

            left = level.pending
            level.pending = None
            level.count += 1
            self._record_pair(depth, level.count - 2, left, node)
            node = hash_concat(left, node)
            depth += 1

    def feed_all(self, leaves: Iterable[bytes]) -> None:
        for leaf in leaves:
            self.feed(leaf)

    def _climb(self, accumulators: list[_ProofAccumulator], node: MerkleNode) -> None:
        for accumulator in accumulators:
            accumulator.add(node)
            key = (accumulator.level, accumulator.position)
            self._climbing.setdefault(key, []).append(accumulator)

    def _record_pair(self, depth: int, left_position: int, left: bytes, right: bytes) -> None:
        """Append siblings to every proof whose branch is in this pair."""
        left_side = self._climbing.pop((depth, left_position), [])
        right_side = self._climbing.pop((depth, left_position + 1), [])
        if left == right:
            for accumulator in right_side:
                if accumulator.conflict_level is None:
                    accumulator.conflict_level = depth
        self._climb(left_side, MerkleNode.from_hash(right))
        self._climb(right_side, MerkleNode.from_hash(left))

    def _record_duplicate(self, depth: int, position: int) -> None:
        self._climb(self._climbing.pop((depth, position), []), MerkleNode.duplicate())

    def finalize(self) -> tuple[bytes, list[MerkleProof]]:
        """
        Complete the tree and return its root and the registered proofs.

        Returns:
            (root, proofs) with proofs in registration order

        Raises:
            TreeConstructionException: If the tree is empty, a registered
                txid was never fed or repeats an earlier subtree, or finalize
                was already called
        """
        self._check_open("finalize")
        self._finalized = True

        if self._count == 0:
            raise TreeConstructionException(
                "Cannot finalize an empty merkle tree",
                code=ErrorCodes.EMPTY_TREE,
            )

        if self._waiting:
            missing = [hash_to_str(txid) for txid in self._waiting]
            raise TreeConstructionException(
                f"{len(missing)} registered txid(s) never fed to the tree",
                code=ErrorCodes.UNRESOLVED_TARGET,
                details={"missing": missing},
            )

        # Climb from the bottom, completing every level left with an odd node.
        # ``carry`` is the node being appended to the current level from below.
        root = None
        carry: bytes | None = None
        top = len(self._levels) - 1
        for depth, level in enumerate(self._levels):
            if carry is None:
                if level.count % 2 == 0:
                    continue
                if depth == top:
                    root = level.pending
                    break
                self._record_duplicate(depth, level.count - 1)
                carry = hash_concat(level.pending, level.pending)
                continue

            if level.count % 2 == 0:
                # Carry lands on a left position with no sibling.
                self._record_duplicate(depth, level.count)
                carry = hash_concat(carry, carry)
            else:
                self._record_pair(depth, level.count - 1, level.pending, carry)
                carry = hash_concat(level.pending, carry)

        if root is None:
            root = carry

        conflicts = [a for a in self._proofs if a.conflict_level is not None]
        if conflicts:
            raise TreeConstructionException(
                f"{len(conflicts)} registered txid(s) sit on a right branch equal to "
                f"its left sibling",
                code=ErrorCodes.DUPLICATE_SUBTREE,
                details={
                    "txids": [hash_to_str(a.txid) for a in conflicts],
                    "levels": [a.conflict_level for a in conflicts],
                },
            )

        proofs = [accumulator.to_proof() for accumulator in self._proofs]
        logger.debug(
            f"Finalized merkle tree: {self._count} leaves, root {hash_to_str(root)}, "
            f"{len(proofs)} proof(s)"
        )
        return root, proofs


def build_merkle_root(leaves: Sequence[bytes]) -> bytes:
    """
    Compute the Merkle root of a complete leaf sequence.

    Raises:
        TreeConstructionException: If leaves is empty
    """
    builder = MerkleTreeBuilder()
    builder.feed_all(leaves)
    root, _ = builder.finalize()
    return root


def build_merkle_proofs(
    leaves: Sequence[bytes],
    targets: Sequence[bytes],
) -> tuple[bytes, list[MerkleProof]]:
    """
    Compute the root and one proof per target for a complete leaf sequence.

    Args:
        leaves: Leaf hashes in tree order
        targets: Leaf values to prove, in the order proofs are wanted

    Returns:
        (root, proofs)
    """
    builder = MerkleTreeBuilder(targets)
    builder.feed_all(leaves)
    return builder.finalize()


def compute_tree_height(num_leaves: int) -> int:
    """
    Number of proof nodes for a tree of ``num_leaves`` leaves.

    A single leaf has height 0, two leaves height 1, three or four leaves
    height 2.
    """
    if num_leaves <= 0:
        raise ValueError(f"Tree must have at least one leaf, got {num_leaves}")
    return (num_leaves - 1).bit_length()


__all__ = [
    "MerkleTreeBuilder",
    "build_merkle_root",
    "build_merkle_proofs",
    "compute_tree_height",
]
