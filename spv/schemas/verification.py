"""
Schemas & Errors
File: verification.py

Purpose: Result format for batch proof verification.
Single-proof verification raises; batch verification reports every
proof's outcome as a CheckResult so one bad proof does not hide the rest.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .errors import SPVError


class CheckResult(BaseModel):
    """
    Outcome of verifying one proof in a batch.

    Failed checks carry the error code the single-proof verifier raised.
    """

    model_config = ConfigDict(extra="forbid")

    check_id: str = Field(
        ...,
        description="Identifier of the proof within its batch, e.g. proof[3]",
        min_length=1,
    )
    ok: bool = Field(
        ...,
        description="Whether the proof verified",
    )
    message: str = Field(
        ...,
        description="Human-readable outcome",
    )
    code: str | None = Field(
        default=None,
        description="Error code of a failed check",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="txid, index and error details",
    )

    @classmethod
    def passed(
        cls,
        check_id: str,
        message: str = "Merkle proof verified",
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        return cls(check_id=check_id, ok=True, message=message, details=details or {})

    @classmethod
    def failed(
        cls,
        check_id: str,
        message: str,
        code: str,
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        return cls(
            check_id=check_id,
            ok=False,
            message=message,
            code=code,
            details=details or {},
        )

    def to_error(self) -> SPVError | None:
        """Structured error for a failed check, None when it passed."""
        if self.ok:
            return None
        return SPVError(
            code=self.code or "SPV_ERROR",
            message=self.message,
            details={"check_id": self.check_id, **self.details},
        )


class VerificationResult(BaseModel):
    """
    Complete result of a batch verification.

    ``ok`` is True only when every check passed; ``error`` describes the
    first failed check.
    """

    model_config = ConfigDict(extra="forbid")

    ok: bool = Field(
        ...,
        description="Overall verification success",
    )
    checks: list[CheckResult] = Field(
        default_factory=list,
        description="One check per proof, in input order",
    )
    error: SPVError | None = Field(
        default=None,
        description="First error encountered, if any",
    )

    @property
    def passed_count(self) -> int:
        return sum(1 for check in self.checks if check.ok)

    @property
    def failed_count(self) -> int:
        return len(self.checks) - self.passed_count

    def get_failed_checks(self) -> list[CheckResult]:
        return [check for check in self.checks if not check.ok]

    @classmethod
    def from_checks(cls, checks: list[CheckResult]) -> "VerificationResult":
        """Aggregate per-proof checks into a batch result."""
        failed = [check for check in checks if not check.ok]
        return cls(
            ok=not failed,
            checks=checks,
            error=failed[0].to_error() if failed else None,
        )
