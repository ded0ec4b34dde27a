"""Status derivation - pure function of an event history."""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List

from transfers.domain.model import Status, TransferEvent, TERMINAL_STATUSES


@dataclass(frozen=True)
class DerivedCore:
    current_status: Status
    is_terminal: bool
    last_updated: datetime
    event_count: int


def sort_events(events: Iterable[TransferEvent]) -> List[TransferEvent]:
    """
    Order events by (timestamp, event_id).

    Timestamps alone do not totally order a history, ties are broken by
    ascending event_id so every caller gets the same sequence.
    """
    return sorted(events, key=lambda e: (e.timestamp, e.event_id))


def derive(transfer_id: str, events: Iterable[TransferEvent]) -> DerivedCore:
    """
    Derive current state: the latest event by timestamp wins, not the
    latest by arrival.

    Raises:
        ValueError: if there are no events, a transfer only exists once it
            has at least one accepted event
    """
    ordered = sort_events(events)
    if not ordered:
        raise ValueError(f"No events found for transfer {transfer_id}")

    last = ordered[-1]
    return DerivedCore(
        current_status=last.status,
        is_terminal=last.status in TERMINAL_STATUSES,
        last_updated=last.timestamp,
        event_count=len(ordered),
    )
