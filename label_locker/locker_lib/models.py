"""Label record types shared by the service and the stores."""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class LabelState(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"


@dataclass(frozen=True)
class LabelRecord:
    """One persisted label.

    ``version`` is assigned by the store on every successful write and is
    only ever compared for equality. Records that have not been written yet
    carry ``None``.
    """

    name: str
    state: LabelState
    version: Optional[bytes] = None

    def with_state(self, state: LabelState) -> "LabelRecord":
        return replace(self, state=state)
