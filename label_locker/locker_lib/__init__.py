"""Shared helpers for the label locker toolchain."""

from . import config, log, db, label_utils  # noqa: F401
from .errors import LabelLockerError, LabelUnavailableError, StorageError
from .models import LabelRecord, LabelState
from .results import ErrorReason, ReleaseOutcome, ReservationOutcome
from .service import LabelLockService
from .stores import InMemoryLabelStore, LabelStore, SQLiteLabelStore

__all__ = [
    "config",
    "log",
    "db",
    "label_utils",
    "ErrorReason",
    "InMemoryLabelStore",
    "LabelLockService",
    "LabelLockerError",
    "LabelRecord",
    "LabelState",
    "LabelStore",
    "LabelUnavailableError",
    "ReleaseOutcome",
    "ReservationOutcome",
    "SQLiteLabelStore",
    "StorageError",
]
