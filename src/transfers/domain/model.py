"""
Transfer lifecycle value types.
Events are the source of truth, Transfer is derived from them and disposable.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Status(str, Enum):
    """Closed set of statuses an originating system may report"""
    INITIATED = "initiated"
    PROCESSING = "processing"
    SETTLED = "settled"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({Status.SETTLED, Status.FAILED})


class WarningType(str, Enum):
    """Data-quality anomalies detected in an event history"""
    EVENT_AFTER_TERMINAL = "event_after_terminal"
    CONFLICTING_TERMINALS = "conflicting_terminals"
    MISSING_INITIATED = "missing_initiated"
    DUPLICATE_STATUS = "duplicate_status"


def as_utc(timestamp: datetime) -> datetime:
    """Normalise to UTC, naive timestamps are taken to be UTC already"""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


@dataclass(frozen=True)
class TransferEvent:
    """Status observation about a transfer, immutable once accepted"""
    transfer_id: str
    event_id: str                      # idempotency key, unique per transfer_id
    status: Status
    timestamp: datetime                # asserted by the originating system
    reason: Optional[str] = None       # conventionally only on failed
    arrival_order: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "transfer_id": self.transfer_id,
            "event_id": self.event_id,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "arrival_order": self.arrival_order,
        }
        if self.reason is not None:
            data["reason"] = self.reason
        return data


@dataclass(frozen=True)
class TransferWarning:
    type: WarningType
    message: str
    event_ids: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "message": self.message,
            "event_ids": list(self.event_ids),
        }


@dataclass(frozen=True)
class Transfer:
    """
    Derived view of a transfer.

    Rebuilt from the full event history on every accepted mutation and
    swapped in whole, never patched in place.
    """
    transfer_id: str
    current_status: Status
    is_terminal: bool
    has_warnings: bool
    last_updated: datetime
    event_count: int
    warnings: Tuple[TransferWarning, ...] = ()
    events: Tuple[TransferEvent, ...] = ()
    rejected_duplicates: Tuple[str, ...] = field(default=(), compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transfer_id": self.transfer_id,
            "current_status": self.current_status.value,
            "is_terminal": self.is_terminal,
            "has_warnings": self.has_warnings,
            "last_updated": self.last_updated.isoformat(),
            "event_count": self.event_count,
            "warnings": [w.to_dict() for w in self.warnings],
            "events": [e.to_dict() for e in self.events],
            "rejected_duplicates": list(self.rejected_duplicates),
        }
