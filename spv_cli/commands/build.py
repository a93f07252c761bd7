"""
CLI Build Command

Build a Merkle tree from a list of txids and emit proofs for selected ones.

Usage:
    spv build txids.txt --target <txid> [--target <txid> ...]
        [--header HEX | --block-hash HASH] [--format hex|json] [--json]

The leaves file holds one display-hex txid per line, in block order.
Without --header or --block-hash the proofs target the computed root.
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace

from spv.crypto.hashing import from_hex, hash_from_str, hash_to_str
from spv.merkle import MerkleTreeBuilder
from spv.schemas.errors import SPVException
from spv.wire import BlockHeader
from spv_cli.commands.common import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    format_proof,
    read_lines,
)


logger = logging.getLogger(__name__)


def build_cmd(args: Namespace) -> int:
    """
    Execute the build command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    fmt = args.format or args.cli_config.output.format

    try:
        leaves = [hash_from_str(line) for line in read_lines(args.leaves)]
        targets = [hash_from_str(t) for t in args.target]
        header = BlockHeader.from_bytes(from_hex(args.header)) if args.header else None
        block_hash = hash_from_str(args.block_hash) if args.block_hash else None
    except (OSError, ValueError) as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    logger.info(f"Building merkle tree from {len(leaves)} leaves, {len(targets)} target(s)")
    builder = MerkleTreeBuilder(targets)
    try:
        builder.feed_all(leaves)
        root, proofs = builder.finalize()
    except SPVException as e:
        print(f"Error building tree: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if header is not None:
        if header.merkle_root != root:
            print(
                f"Error: header merkle root {hash_to_str(header.merkle_root)} "
                f"does not match computed root {hash_to_str(root)}",
                file=sys.stderr,
            )
            return EXIT_RUNTIME_ERROR
        proofs = [proof.with_block_header(header) for proof in proofs]
    elif block_hash is not None:
        proofs = [proof.with_block_hash(block_hash) for proof in proofs]
    else:
        proofs = [proof.with_merkle_root(root) for proof in proofs]

    rendered = [format_proof(proof, fmt) for proof in proofs]

    if args.json:
        print(json.dumps({
            "root": hash_to_str(root),
            "leaf_count": len(leaves),
            "proofs": [json.loads(r) if fmt == "json" else r for r in rendered],
        }, indent=2))
    else:
        print(f"root: {hash_to_str(root)}")
        for line in rendered:
            print(line)

    return EXIT_SUCCESS
