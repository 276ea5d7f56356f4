"""Exceptions raised by the label stores and helpers."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .results import ReservationOutcome


class LabelLockerError(Exception):
    """Base class for label locker errors."""


class StorageError(LabelLockerError):
    """Raised by a store when the backing storage is unavailable or fails."""


class LabelUnavailableError(LabelLockerError):
    """Raised by ``LabelLockService.hold`` when the reservation fails."""

    def __init__(self, name: str, outcome: "ReservationOutcome") -> None:
        self.name = name
        self.outcome = outcome
        reason = outcome.error_reason.value if outcome.error_reason else "unknown"
        super().__init__(f"Could not reserve label {name!r} ({reason}): {outcome.message}")
