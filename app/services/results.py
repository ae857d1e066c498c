"""
Result values returned by the claim services.

Services never raise across their boundary. Callers branch on
``ServiceResult.error`` (a ``ClaimErrorKind``), not on message text.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ClaimErrorKind(str, Enum):
    duplicate_claim = "duplicate_claim"
    forbidden = "forbidden"
    invalid_transition = "invalid_transition"
    not_found = "not_found"
    storage_failure = "storage_failure"


@dataclass
class ServiceResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[ClaimErrorKind] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "ServiceResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ClaimErrorKind, detail: Optional[str] = None) -> "ServiceResult[T]":
        return cls(error=kind, detail=detail)


class DuplicateClaimError(Exception):
    """Raised by the claim store when the (lost disc, claimer) index rejects an insert."""
