"""Reserve/release decision logic for named labels.

The service is stateless: every call performs one read and at most one
conditional write against the store, and the store's compare-and-swap is the
only thing that keeps two callers from holding the same label. Failures are
returned as outcomes and never retried here; only the caller knows whether
acquiring the label is still wanted.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from .errors import LabelUnavailableError, StorageError
from .label_utils import is_token, normalize_label, tokens_match
from .models import LabelRecord, LabelState
from .results import ErrorReason, ReleaseOutcome, ReservationOutcome
from .stores.base_store import LabelStore

EMPTY_NAME_MESSAGE = "Label name cannot be empty or whitespace."


class LabelLockService:
    def __init__(self, store: LabelStore, logger: Optional[logging.Logger] = None) -> None:
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def reserve(self, name: Optional[str]) -> ReservationOutcome:
        """Attempt to take exclusive hold of a label.

        Args:
            name: Label name; case and surrounding whitespace are ignored

        Returns:
            Outcome with the new version token on success, or the reason
            the label could not be reserved
        """
        label = normalize_label(name)
        if not label:
            return ReservationOutcome.failure_result(ErrorReason.VALIDATION, EMPTY_NAME_MESSAGE)

        try:
            record = self.store.find(label)
            if record is None:
                self.logger.debug("Label %s unknown; creating reserved record", label)
                token = self.store.add_or_update(
                    LabelRecord(name=label, state=LabelState.RESERVED),
                    expected_version=None,
                )
                if token is None:
                    return self._reserve_conflict(label, "Concurrency conflict detected during reservation.")
                self.logger.info("Reserved new label %s", label)
                return ReservationOutcome.success_result(token)

            if record.state is LabelState.RESERVED:
                self.logger.debug("Label %s is already reserved", label)
                return ReservationOutcome.failure_result(ErrorReason.ALREADY_HELD, "Label is already reserved.")

            token = self.store.add_or_update(record.with_state(LabelState.RESERVED), expected_version=record.version)
        except StorageError as exc:
            self.logger.warning("Storage failure reserving label %s: %s", label, exc)
            return ReservationOutcome.failure_result(ErrorReason.STORAGE, str(exc))

        if token is None:
            return self._reserve_conflict(label, "Concurrency conflict detected during update.")
        self.logger.info("Reserved label %s", label)
        return ReservationOutcome.success_result(token)

    def release(self, name: Optional[str], token: bytes) -> ReleaseOutcome:
        """Give up a label held with ``token``.

        Releasing an unknown label, or one that is already available, is a
        successful no-op. A token that does not match the stored version is
        rejected as a conflict without touching the record.

        Raises:
            TypeError: If ``token`` is not bytes-like
        """
        if not is_token(token):
            raise TypeError(f"token must be bytes-like, got {type(token).__name__}")
        label = normalize_label(name)
        if not label:
            return ReleaseOutcome.failure_result(ErrorReason.VALIDATION, EMPTY_NAME_MESSAGE)

        try:
            record = self.store.find(label)
            if record is None:
                self.logger.debug("Label %s has no record; nothing to release", label)
                return ReleaseOutcome.success_result()

            if record.version is None or not tokens_match(record.version, token):
                self.logger.warning("Token mismatch releasing label %s", label)
                return ReleaseOutcome.failure_result(ErrorReason.CONCURRENCY_CONFLICT, "Concurrency conflict detected.")

            if record.state is not LabelState.RESERVED:
                self.logger.debug("Label %s already available", label)
                return ReleaseOutcome.success_result()

            new_version = self.store.add_or_update(record.with_state(LabelState.AVAILABLE), expected_version=record.version)
        except StorageError as exc:
            self.logger.warning("Storage failure releasing label %s: %s", label, exc)
            return ReleaseOutcome.failure_result(ErrorReason.STORAGE, str(exc))

        if new_version is None:
            self.logger.warning("Concurrent write beat release of label %s", label)
            return ReleaseOutcome.failure_result(
                ErrorReason.CONCURRENCY_CONFLICT,
                "Failed to update the label due to a concurrency conflict.",
            )
        self.logger.info("Released label %s", label)
        return ReleaseOutcome.success_result()

    def describe(self, name: Optional[str]) -> Optional[LabelRecord]:
        label = normalize_label(name)
        if not label:
            raise ValueError(EMPTY_NAME_MESSAGE)
        return self.store.find(label)

    def labels(self) -> List[LabelRecord]:
        return self.store.all()

    @contextmanager
    def hold(self, name: str) -> Iterator[ReservationOutcome]:
        """Reserve ``name`` for the duration of a ``with`` block.

        Raises:
            LabelUnavailableError: If the reservation fails
        """
        outcome = self.reserve(name)
        if not outcome.success:
            raise LabelUnavailableError(normalize_label(name), outcome)
        try:
            yield outcome
        finally:
            released = self.release(name, outcome.token)
            if not released.success:
                self.logger.warning(
                    "Release of label %s failed on exit (%s): %s",
                    normalize_label(name),
                    released.error_reason.value,
                    released.message,
                )

    def _reserve_conflict(self, label: str, message: str) -> ReservationOutcome:
        self.logger.warning("Concurrent write beat reservation of label %s", label)
        return ReservationOutcome.failure_result(ErrorReason.CONCURRENCY_CONFLICT, message)
