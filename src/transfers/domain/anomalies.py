"""
Anomaly detection on a transfer's event history.

Every rule runs on every recomputation and rules never suppress each other.
Warnings are attached to the derived Transfer, they never block ingestion.
"""
from typing import Dict, List, Sequence

from transfers.domain.model import (
    Status,
    TransferEvent,
    TransferWarning,
    WarningType,
    TERMINAL_STATUSES,
)


def detect(sorted_events: Sequence[TransferEvent]) -> List[TransferWarning]:
    """
    Detect all anomalies in an event history.

    Args:
        sorted_events: history ordered by (timestamp, event_id)

    Returns:
        List of warnings, empty for a clean history
    """
    warnings: List[TransferWarning] = []
    warnings.extend(check_event_after_terminal(sorted_events))
    warnings.extend(check_conflicting_terminals(sorted_events))
    warnings.extend(check_missing_initiated(sorted_events))
    warnings.extend(check_duplicate_status(sorted_events))
    return warnings


def check_event_after_terminal(sorted_events: Sequence[TransferEvent]) -> List[TransferWarning]:
    """Flag events timestamped strictly after the first terminal event."""
    first_terminal = next(
        (i for i, e in enumerate(sorted_events) if e.status in TERMINAL_STATUSES),
        None,
    )
    if first_terminal is None:
        return []

    terminal = sorted_events[first_terminal]
    # equal timestamps sort after the terminal only through the event_id tie-break
    after = [
        e for e in sorted_events[first_terminal + 1:]
        if e.timestamp > terminal.timestamp
    ]
    if not after:
        return []

    return [
        TransferWarning(
            type=WarningType.EVENT_AFTER_TERMINAL,
            message=f"Activity detected after transfer reached terminal state ({terminal.status.value})",
            event_ids=tuple(e.event_id for e in after),
        )
    ]


def check_conflicting_terminals(sorted_events: Sequence[TransferEvent]) -> List[TransferWarning]:
    settled = [e.event_id for e in sorted_events if e.status == Status.SETTLED]
    failed = [e.event_id for e in sorted_events if e.status == Status.FAILED]
    if not (settled and failed):
        return []

    return [
        TransferWarning(
            type=WarningType.CONFLICTING_TERMINALS,
            message="Both settled and failed states received",
            event_ids=tuple(settled + failed),
        )
    ]


def check_missing_initiated(sorted_events: Sequence[TransferEvent]) -> List[TransferWarning]:
    """Informational: the history starts somewhere past initiated."""
    if not sorted_events or any(e.status == Status.INITIATED for e in sorted_events):
        return []

    return [
        TransferWarning(
            type=WarningType.MISSING_INITIATED,
            message="No initiated event found in transfer history",
            event_ids=tuple(e.event_id for e in sorted_events),
        )
    ]


def check_duplicate_status(sorted_events: Sequence[TransferEvent]) -> List[TransferWarning]:
    """Same status reported under more than one event_id."""
    groups: Dict[Status, List[str]] = {}
    for event in sorted_events:
        groups.setdefault(event.status, []).append(event.event_id)

    warnings = []
    for status, event_ids in groups.items():
        if len(set(event_ids)) > 1:
            warnings.append(
                TransferWarning(
                    type=WarningType.DUPLICATE_STATUS,
                    message=f'Multiple events report status "{status.value}"',
                    event_ids=tuple(event_ids),
                )
            )
    return warnings
