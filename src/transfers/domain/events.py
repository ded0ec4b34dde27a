"""Domain events for the transfer tracker service."""

from dataclasses import dataclass, field
from typing import List

from shared.domain.commands import Event


@dataclass
class TransferUpdated(Event):
    """Event raised when a transfer's derived state has been rebuilt."""
    transfer_id: str
    current_status: str
    is_terminal: bool
    event_count: int
    warning_types: List[str] = field(default_factory=list)
    cause: str = "event"  # "event" or "recompute"


@dataclass
class DuplicateEventRejected(Event):
    """Event raised when an already seen event_id is submitted again."""
    transfer_id: str
    event_id: str
