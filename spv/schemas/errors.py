"""
Schemas & Errors
File: errors.py

Purpose: Standard error taxonomy for proof construction, decoding and
verification. Defines both Pydantic models for structured error
communication and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes."""

    # Tree Construction Errors
    EMPTY_TREE = "EMPTY_TREE"
    DUPLICATE_TARGET = "DUPLICATE_TARGET"
    UNRESOLVED_TARGET = "UNRESOLVED_TARGET"
    BUILDER_FINALIZED = "BUILDER_FINALIZED"
    DUPLICATE_SUBTREE = "DUPLICATE_SUBTREE"

    # Decode Errors
    TRUNCATED_INPUT = "TRUNCATED_INPUT"
    TRAILING_DATA = "TRAILING_DATA"
    UNSUPPORTED_FLAGS = "UNSUPPORTED_FLAGS"
    UNKNOWN_NODE_TYPE = "UNKNOWN_NODE_TYPE"
    NODE_COUNT_MISMATCH = "NODE_COUNT_MISMATCH"
    NON_CANONICAL_VARINT = "NON_CANONICAL_VARINT"
    MALFORMED_JSON = "MALFORMED_JSON"
    INVALID_HASH = "INVALID_HASH"
    INVALID_TRANSACTION = "INVALID_TRANSACTION"

    # Encode Errors
    MISSING_TARGET = "MISSING_TARGET"

    # Merkle & Verification Errors
    MERKLE_PROOF_INVALID = "MERKLE_PROOF_INVALID"
    ROOT_MISMATCH = "ROOT_MISMATCH"
    NOT_VERIFIABLE = "NOT_VERIFIABLE"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class SPVError(BaseModel):
    """
    Base error model for structured error communication.

    Used where failures are reported as data (batch verification results)
    rather than raised.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.ROOT_MISMATCH],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class SPVException(Exception):
    """
    Base exception for all proof engine errors.

    This exception carries the same structured fields as SPVError, the
    form batch verification reports failures in.
    """

    def __init__(
        self,
        message: str,
        code: str = "SPV_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class TreeConstructionException(SPVException):
    """Exception raised when a Merkle tree builder is misused or incomplete."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.EMPTY_TREE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            details=details,
            retryable=False,
        )


class ProofDecodeException(SPVException):
    """Exception raised when binary or JSON proof input cannot be decoded."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.TRUNCATED_INPUT,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(
            message=message,
            code=code,
            details=full_details,
            retryable=False,
        )


class ProofEncodeException(SPVException):
    """Exception raised when a proof cannot be serialized."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.MISSING_TARGET,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            details=details,
            retryable=False,
        )


class MerkleVerificationException(SPVException):
    """Exception raised when Merkle proof verification fails."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.MERKLE_PROOF_INVALID,
        leaf_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if leaf_index is not None:
            full_details["leaf_index"] = leaf_index
        super().__init__(
            message=message,
            code=code,
            details=full_details,
            retryable=False,
        )
