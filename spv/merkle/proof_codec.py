"""
Merkle Proof Codec
Binary and JSON encodings of MerkleProof (TSC Merkle proof standard).

Binary layout:
    flags       1 byte
    index       varint
    subject     32-byte txid, or varint length + raw transaction (flag 0x01)
    target      32-byte block hash, 80-byte header (flag 0x02)
                or 32-byte merkle root (flag 0x04)
    node count  varint
    nodes       type byte (0 hash, 1 duplicate, 2 known) + 32 bytes for hashes

JSON layout (compact, fields in this order):
    {"index", "txOrId", "targetType"?, "target", "nodes"}
    Hashes use display (byte-reversed) hex; raw transactions and headers use
    plain hex. Duplicate nodes are "*", known nodes are "?".

Both encodings describe the same value: decoding either form and
re-encoding into the other is lossless.
"""
from __future__ import annotations

import io
from typing import BinaryIO

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from spv.crypto.hashing import (
    HASH32_SIZE,
    double_sha256,
    from_hex,
    hash_from_str,
    hash_to_str,
    to_hex,
)
from spv.merkle.merkle_node import MerkleNode, NodeType
from spv.merkle.merkle_proof import MerkleProof, TargetType
from spv.schemas.errors import (
    ErrorCodes,
    ProofDecodeException,
    ProofEncodeException,
)
from spv.wire.block_header import BlockHeader
from spv.wire.varint import read_exact, read_var_int, write_var_int


# Flag bits
FLAG_TX = 0x01
FLAG_HEADER = 0x02
FLAG_MERKLE_ROOT = 0x04
FLAG_TREE = 0x08
FLAG_COMPOSITE = 0x10

SUPPORTED_FLAGS = FLAG_TX | FLAG_HEADER | FLAG_MERKLE_ROOT

# JSON node markers
JSON_DUPLICATE_NODE = "*"
JSON_KNOWN_NODE = "?"


# =============================================================================
# Binary
# =============================================================================

def proof_flags(proof: MerkleProof) -> int:
    """Compute the flags byte describing a proof's subject and target."""
    flags = 0
    if proof.tx is not None:
        flags |= FLAG_TX

    target_type = proof.target_type
    if target_type is None:
        raise ProofEncodeException(
            "Missing target (block hash, header or merkle root)",
            code=ErrorCodes.MISSING_TARGET,
            details={"index": proof.index},
        )
    if target_type == TargetType.HEADER:
        flags |= FLAG_HEADER
    elif target_type == TargetType.MERKLE_ROOT:
        flags |= FLAG_MERKLE_ROOT
    return flags


def check_flags(flags: int) -> None:
    """Reject flag combinations this codec cannot decode."""
    if flags & FLAG_TREE:
        raise ProofDecodeException(
            "Tree proofs (flag 0x08) are not supported",
            code=ErrorCodes.UNSUPPORTED_FLAGS,
            field_path="flags",
        )
    if flags & FLAG_COMPOSITE:
        raise ProofDecodeException(
            "Composite proofs (flag 0x10) are not supported",
            code=ErrorCodes.UNSUPPORTED_FLAGS,
            field_path="flags",
        )
    if flags & ~SUPPORTED_FLAGS:
        raise ProofDecodeException(
            f"Unknown flag bits 0x{flags & ~SUPPORTED_FLAGS:02x}",
            code=ErrorCodes.UNSUPPORTED_FLAGS,
            field_path="flags",
        )
    if flags & FLAG_HEADER and flags & FLAG_MERKLE_ROOT:
        raise ProofDecodeException(
            "Header and merkle root target flags are mutually exclusive",
            code=ErrorCodes.UNSUPPORTED_FLAGS,
            field_path="flags",
        )


def write_proof(stream: BinaryIO, proof: MerkleProof) -> None:
    """Write the binary form of ``proof`` to ``stream``."""
    flags = proof_flags(proof)
    stream.write(bytes([flags]))
    write_var_int(stream, proof.index)

    if proof.tx is not None:
        write_var_int(stream, len(proof.tx))
        stream.write(proof.tx)
    else:
        stream.write(proof.txid)

    if proof.block_header is not None:
        stream.write(proof.block_header.serialize())
    elif proof.merkle_root is not None:
        stream.write(proof.merkle_root)
    else:
        stream.write(proof.block_hash)

    write_var_int(stream, len(proof.nodes))
    for node in proof.nodes:
        stream.write(bytes([node.kind]))
        if node.kind == NodeType.HASH:
            stream.write(node.value)


def serialize_proof(proof: MerkleProof) -> bytes:
    """Return the binary form of ``proof``."""
    buf = io.BytesIO()
    write_proof(buf, proof)
    return buf.getvalue()


def read_proof(stream: BinaryIO) -> MerkleProof:
    """Read one binary proof from ``stream``."""
    flags = read_exact(stream, 1, "flags")[0]
    check_flags(flags)

    index = read_var_int(stream, "index")

    tx = None
    if flags & FLAG_TX:
        tx_size = read_var_int(stream, "tx length")
        if tx_size in (0, HASH32_SIZE):
            raise ProofDecodeException(
                f"Raw transaction cannot be {tx_size} bytes long",
                code=ErrorCodes.INVALID_TRANSACTION,
                field_path="tx length",
            )
        tx = read_exact(stream, tx_size, "tx")
        txid = double_sha256(tx)
    else:
        txid = read_exact(stream, HASH32_SIZE, "txid")

    target: dict = {}
    if flags & FLAG_HEADER:
        target["block_header"] = BlockHeader.deserialize(stream)
    elif flags & FLAG_MERKLE_ROOT:
        target["merkle_root"] = read_exact(stream, HASH32_SIZE, "merkle root")
    else:
        target["block_hash"] = read_exact(stream, HASH32_SIZE, "block hash")

    node_count = read_var_int(stream, "node count")
    nodes: list[MerkleNode] = []
    for i in range(node_count):
        tag = stream.read(1)
        if not tag:
            raise ProofDecodeException(
                f"Declared {node_count} nodes but input ended after {i}",
                code=ErrorCodes.NODE_COUNT_MISMATCH,
                field_path=f"nodes[{i}]",
            )
        if tag[0] == NodeType.HASH:
            nodes.append(MerkleNode.from_hash(read_exact(stream, HASH32_SIZE, f"nodes[{i}]")))
        elif tag[0] == NodeType.DUPLICATE:
            nodes.append(MerkleNode.duplicate())
        elif tag[0] == NodeType.KNOWN:
            nodes.append(MerkleNode.known())
        else:
            raise ProofDecodeException(
                f"Unsupported node type at index {i} : type {tag[0]}",
                code=ErrorCodes.UNKNOWN_NODE_TYPE,
                field_path=f"nodes[{i}]",
            )

    try:
        return MerkleProof(index=index, txid=txid, nodes=tuple(nodes), tx=tx, **target)
    except ValueError as e:
        raise ProofDecodeException(
            f"Invalid proof: {e}",
            code=ErrorCodes.INVALID_HASH,
        ) from e


def deserialize_proof(data: bytes) -> MerkleProof:
    """
    Decode a binary proof.

    The whole buffer must be consumed.

    Raises:
        ProofDecodeException: On truncated, trailing or malformed input
    """
    stream = io.BytesIO(data)
    proof = read_proof(stream)
    remaining = len(data) - stream.tell()
    if remaining:
        raise ProofDecodeException(
            f"{remaining} trailing bytes after proof",
            code=ErrorCodes.TRAILING_DATA,
        )
    return proof


# =============================================================================
# JSON
# =============================================================================

class JsonMerkleProof(BaseModel):
    """Wire shape of the JSON proof encoding."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    index: int = Field(..., ge=0, description="Index of the transaction in the block")
    tx_or_id: str = Field(
        ...,
        alias="txOrId",
        description="Display hex txid, or plain hex raw transaction",
    )
    target_type: str | None = Field(
        default=None,
        alias="targetType",
        description='"hash" (default, omitted), "header" or "merkleRoot"',
    )
    target: str = Field(..., description="Target encoded according to targetType")
    proof_type: str | None = Field(
        default=None,
        alias="proofType",
        description='"branch" (default, omitted); "tree" is not supported',
    )
    composite: bool = Field(default=False)
    nodes: list[str] | None = Field(
        default=None,
        description='Display hex hashes, "*" for duplicates, "?" for known nodes',
    )


def _node_to_json(node: MerkleNode) -> str:
    if node.kind == NodeType.HASH:
        return hash_to_str(node.value)
    if node.kind == NodeType.DUPLICATE:
        return JSON_DUPLICATE_NODE
    return JSON_KNOWN_NODE


def _node_from_json(text: str, i: int) -> MerkleNode:
    if text == JSON_DUPLICATE_NODE:
        return MerkleNode.duplicate()
    if text == JSON_KNOWN_NODE:
        return MerkleNode.known()
    if len(text) == HASH32_SIZE * 2:
        return MerkleNode.from_hash(_parse_hash(text, f"nodes[{i}]"))
    raise ProofDecodeException(
        f"Unsupported node value at index {i} : {text}",
        code=ErrorCodes.UNKNOWN_NODE_TYPE,
        field_path=f"nodes[{i}]",
    )


def _parse_hash(text: str, field: str) -> bytes:
    try:
        return hash_from_str(text)
    except ValueError as e:
        raise ProofDecodeException(
            f"Invalid hash for {field}: {e}",
            code=ErrorCodes.INVALID_HASH,
            field_path=field,
        ) from e


def _parse_hex(text: str, field: str) -> bytes:
    try:
        return from_hex(text)
    except ValueError as e:
        raise ProofDecodeException(
            f"Invalid hex for {field}: {e}",
            code=ErrorCodes.MALFORMED_JSON,
            field_path=field,
        ) from e


def proof_to_json_model(proof: MerkleProof) -> JsonMerkleProof:
    """Convert a proof to its JSON wire model."""
    target_type = proof.target_type
    if target_type is None:
        raise ProofEncodeException(
            "Missing target (block hash, header or merkle root)",
            code=ErrorCodes.MISSING_TARGET,
            details={"index": proof.index},
        )

    if target_type == TargetType.HEADER:
        target = to_hex(proof.block_header.serialize())
    elif target_type == TargetType.MERKLE_ROOT:
        target = hash_to_str(proof.merkle_root)
    else:
        target = hash_to_str(proof.block_hash)

    return JsonMerkleProof(
        index=proof.index,
        tx_or_id=to_hex(proof.tx) if proof.tx is not None else hash_to_str(proof.txid),
        target_type=None if target_type == TargetType.BLOCK_HASH else target_type.value,
        target=target,
        nodes=[_node_to_json(node) for node in proof.nodes],
    )


def proof_to_json(proof: MerkleProof) -> str:
    """Return the compact JSON form of ``proof``."""
    return proof_to_json_model(proof).model_dump_json(by_alias=True, exclude_defaults=True)


def proof_from_json_model(model: JsonMerkleProof) -> MerkleProof:
    """Convert a validated JSON wire model into a proof."""
    if model.proof_type not in (None, "", "branch"):
        raise ProofDecodeException(
            f"Unsupported proof type: {model.proof_type}",
            code=ErrorCodes.UNSUPPORTED_FLAGS,
            field_path="proofType",
        )
    if model.composite:
        raise ProofDecodeException(
            "Composite proofs are not supported",
            code=ErrorCodes.UNSUPPORTED_FLAGS,
            field_path="composite",
        )

    tx = None
    if len(model.tx_or_id) == HASH32_SIZE * 2:
        txid = _parse_hash(model.tx_or_id, "txOrId")
    else:
        tx = _parse_hex(model.tx_or_id, "txOrId")
        if not tx:
            raise ProofDecodeException(
                "txOrId is empty",
                code=ErrorCodes.INVALID_TRANSACTION,
                field_path="txOrId",
            )
        txid = double_sha256(tx)

    target: dict = {}
    if model.target_type in (None, "", TargetType.BLOCK_HASH.value):
        target["block_hash"] = _parse_hash(model.target, "target")
    elif model.target_type == TargetType.HEADER.value:
        raw = _parse_hex(model.target, "target")
        try:
            target["block_header"] = BlockHeader.from_bytes(raw)
        except ValueError as e:
            raise ProofDecodeException(
                f"Invalid target header: {e}",
                code=ErrorCodes.MALFORMED_JSON,
                field_path="target",
            ) from e
    elif model.target_type == TargetType.MERKLE_ROOT.value:
        target["merkle_root"] = _parse_hash(model.target, "target")
    else:
        raise ProofDecodeException(
            f"Unsupported target type: {model.target_type}",
            code=ErrorCodes.UNSUPPORTED_FLAGS,
            field_path="targetType",
        )

    nodes = tuple(_node_from_json(text, i) for i, text in enumerate(model.nodes or []))
    try:
        return MerkleProof(index=model.index, txid=txid, nodes=nodes, tx=tx, **target)
    except ValueError as e:
        raise ProofDecodeException(
            f"Invalid proof: {e}",
            code=ErrorCodes.INVALID_HASH,
        ) from e


def proof_from_json(data: str | bytes) -> MerkleProof:
    """
    Decode a JSON proof.

    Raises:
        ProofDecodeException: On malformed JSON or invalid field values
    """
    try:
        model = JsonMerkleProof.model_validate_json(data)
    except PydanticValidationError as e:
        raise ProofDecodeException(
            f"Malformed proof JSON: {e.error_count()} validation error(s)",
            code=ErrorCodes.MALFORMED_JSON,
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e
    return proof_from_json_model(model)


__all__ = [
    "FLAG_TX",
    "FLAG_HEADER",
    "FLAG_MERKLE_ROOT",
    "FLAG_TREE",
    "FLAG_COMPOSITE",
    "JSON_DUPLICATE_NODE",
    "JSON_KNOWN_NODE",
    "JsonMerkleProof",
    "proof_flags",
    "check_flags",
    "write_proof",
    "serialize_proof",
    "read_proof",
    "deserialize_proof",
    "proof_to_json_model",
    "proof_to_json",
    "proof_from_json_model",
    "proof_from_json",
]
