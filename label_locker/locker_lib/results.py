"""Outcome types returned by the label lock service."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorReason(str, Enum):
    VALIDATION = "validation"
    ALREADY_HELD = "already_held"
    CONCURRENCY_CONFLICT = "concurrency_conflict"
    STORAGE = "storage"

    @property
    def retryable(self) -> bool:
        """Whether re-reading and trying again can change the result."""
        return self in (ErrorReason.CONCURRENCY_CONFLICT, ErrorReason.STORAGE)


@dataclass(frozen=True)
class ReservationOutcome:
    """Result of a reserve attempt.

    On success ``token`` holds the version the store assigned; it is the
    proof of holding that ``release`` expects back.
    """

    success: bool
    token: Optional[bytes] = None
    error_reason: Optional[ErrorReason] = None
    message: Optional[str] = None

    @classmethod
    def success_result(cls, token: bytes) -> "ReservationOutcome":
        return cls(success=True, token=token)

    @classmethod
    def failure_result(cls, reason: ErrorReason, message: str) -> "ReservationOutcome":
        return cls(success=False, error_reason=reason, message=message)


@dataclass(frozen=True)
class ReleaseOutcome:
    """Result of a release attempt."""

    success: bool
    error_reason: Optional[ErrorReason] = None
    message: Optional[str] = None

    @classmethod
    def success_result(cls) -> "ReleaseOutcome":
        return cls(success=True)

    @classmethod
    def failure_result(cls, reason: ErrorReason, message: str) -> "ReleaseOutcome":
        return cls(success=False, error_reason=reason, message=message)
