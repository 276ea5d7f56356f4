"""Process-local label store backed by a dict."""
from __future__ import annotations

import threading
import uuid
from typing import Dict, List, Optional

from ..models import LabelRecord
from .base_store import LabelStore


class InMemoryLabelStore(LabelStore):
    """Keep label records in memory.

    Every write happens under ``self.lock`` so the compare-and-swap is atomic
    for all threads sharing this instance. Nothing is shared across
    processes.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self._data: Dict[str, LabelRecord] = {}

    def find(self, name: str) -> Optional[LabelRecord]:
        with self.lock:
            return self._data.get(name)

    def add_or_update(self, record: LabelRecord, expected_version: Optional[bytes]) -> Optional[bytes]:
        with self.lock:
            current = self._data.get(record.name)
            if expected_version is None:
                if current is not None:
                    return None
            elif current is None or current.version != bytes(expected_version):
                return None
            version = uuid.uuid4().bytes
            self._data[record.name] = LabelRecord(name=record.name, state=record.state, version=version)
            return version

    def all(self) -> List[LabelRecord]:
        with self.lock:
            return [self._data[name] for name in sorted(self._data)]
