"""
Shared helpers for CLI commands: input reading and proof text formats.
"""

from __future__ import annotations

import sys
from pathlib import Path

from spv.crypto.hashing import from_hex, hash_from_str
from spv.merkle import MerkleProof, deserialize_proof, proof_from_json, serialize_proof
from spv.wire import BlockHeader


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def read_lines(path: str) -> list[str]:
    """Read non-empty, non-comment lines from a file ("-" for stdin)."""
    if path == "-":
        text = sys.stdin.read()
    else:
        text = Path(path).read_text(encoding="utf-8")
    return [
        line.strip()
        for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]


def parse_proof(text: str) -> MerkleProof:
    """Parse a proof given as JSON or as hex of the binary form."""
    text = text.strip()
    if text.startswith("{"):
        return proof_from_json(text)
    return deserialize_proof(from_hex(text))


def format_proof(proof: MerkleProof, fmt: str) -> str:
    """Render a proof as compact JSON or hex of the binary form."""
    if fmt == "hex":
        return serialize_proof(proof).hex()
    return proof.to_json()


def parse_reference(root: str | None, header: str | None) -> bytes | BlockHeader | None:
    """Build a verification reference from --root / --header options."""
    if header:
        return BlockHeader.from_bytes(from_hex(header))
    if root:
        return hash_from_str(root)
    return None
