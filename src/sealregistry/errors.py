"""
Error codes and types for sealregistry.

Numeric codes are part of the public contract: callers and audit trails
key on them, so they MUST stay stable across releases.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(int, Enum):
    """
    Engine error codes.
    """
    NOT_AUTHORIZED = 401
    ALREADY_EXISTS = 402
    INVALID_SIGNATURE = 403
    NOT_FOUND = 404
    INVALID_PROOF = 405
    INVALID_STATUS = 406


@dataclass(frozen=True)
class LedgerError:
    """
    A single engine error with typed code and audit details.
    """
    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "name": self.code.name,
            "message": self.message,
            "details": dict(self.details),
        }


class SealRegistryError(Exception):
    """Base exception for every engine-level failure. Carries a LedgerError."""

    code: ErrorCode

    def __init__(self, message: str, **details: Any):
        self.error = LedgerError(code=self.code, message=message, details=details)
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return self.error.to_dict()


class NotAuthorizedError(SealRegistryError):
    code = ErrorCode.NOT_AUTHORIZED


class AlreadyExistsError(SealRegistryError):
    code = ErrorCode.ALREADY_EXISTS


class InvalidSignatureError(SealRegistryError):
    code = ErrorCode.INVALID_SIGNATURE


class NotFoundError(SealRegistryError):
    code = ErrorCode.NOT_FOUND


class InvalidProofError(SealRegistryError):
    code = ErrorCode.INVALID_PROOF


class InvalidStatusError(SealRegistryError):
    code = ErrorCode.INVALID_STATUS


class BoundaryError(ValueError):
    """
    Input rejected at the edge, before it reaches the engine.

    Wrong-size buffers and over-long text land here. These are not engine
    errors and carry no ErrorCode.
    """

    def __init__(self, field_name: str, message: str):
        self.field = field_name
        self.reason = message
        super().__init__(f"{field_name}: {message}")


@dataclass
class VerificationResult:
    """
    Result of re-verifying a stored record.
    """
    valid: bool
    errors: list[LedgerError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
        }
