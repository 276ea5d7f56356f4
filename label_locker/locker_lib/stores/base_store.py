"""Abstract record store consumed by the label lock service."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import LabelRecord


class LabelStore(ABC):
    """
    Base class for label record stores.

    A store keeps at most one record per normalized label name and owns
    version generation. Implementations must provide:
    - find: side-effect free lookup by name
    - add_or_update: atomic create-if-absent or compare-and-swap update
    - all: snapshot of every record

    Infrastructure failures are raised as ``StorageError``; a failed
    precondition is never an exception, it is reported by returning None.
    """

    @abstractmethod
    def find(self, name: str) -> Optional[LabelRecord]:
        """
        Look up a record by its normalized name.

        Args:
            name: Normalized label name

        Returns:
            The stored record, or None if the name has never been written
        """

    @abstractmethod
    def add_or_update(self, record: LabelRecord, expected_version: Optional[bytes]) -> Optional[bytes]:
        """
        Write a record conditionally.

        With ``expected_version`` None the record is created only if no
        record with that name exists. Otherwise the write is applied only if
        the stored version equals ``expected_version``.

        Args:
            record: Record carrying the name and target state
            expected_version: Version observed at read time, or None to create

        Returns:
            The newly assigned version, or None if the precondition failed

        Raises:
            StorageError: If the backing storage fails
        """

    @abstractmethod
    def all(self) -> List[LabelRecord]:
        """
        Return every stored record sorted by name.

        Returns:
            List of records
        """
