"""
Schemas & Errors
File: __init__.py

Purpose: Export the error taxonomy and verification result models.
"""

from .errors import (
    ErrorCodes,
    MerkleVerificationException,
    ProofDecodeException,
    ProofEncodeException,
    SPVError,
    SPVException,
    TreeConstructionException,
)
from .verification import (
    CheckResult,
    VerificationResult,
)

__all__ = [
    # Errors
    "ErrorCodes",
    "SPVError",
    "SPVException",
    "TreeConstructionException",
    "ProofDecodeException",
    "ProofEncodeException",
    "MerkleVerificationException",
    # Verification
    "CheckResult",
    "VerificationResult",
]
