from dataclasses import replace
from typing import Iterable, List, Optional, Set, Tuple

from transfers.domain import anomalies, status
from transfers.domain.events import DuplicateEventRejected, TransferUpdated
from transfers.domain.model import Transfer, TransferEvent


class TransferLog:
    """
    Append-only event history of one transfer plus its idempotency index.

    Entries are kept in arrival order. Derivation never looks at arrival
    order, it re-sorts the whole history by (timestamp, event_id).
    """

    def __init__(
        self,
        transfer_id: str,
        entries: Optional[Iterable[TransferEvent]] = None,
        rejected_duplicates: Optional[Iterable[str]] = None,
    ):
        self.transfer_id = transfer_id
        self.entries: List[TransferEvent] = list(entries or [])
        self.seen_event_ids: Set[str] = {e.event_id for e in self.entries}
        self.rejected_duplicates: List[str] = list(rejected_duplicates or [])
        self.events: List = []
        self._new_entries: List[TransferEvent] = []
        self._new_duplicates: List[str] = []

    def record(self, event: TransferEvent) -> bool:
        """
        Append event unless its event_id was already seen for this transfer.

        Returns:
            True if the event was appended, False for a duplicate
        """
        if event.event_id in self.seen_event_ids:
            if event.event_id not in self.rejected_duplicates:
                self.rejected_duplicates.append(event.event_id)
                self._new_duplicates.append(event.event_id)
            self.events.append(
                DuplicateEventRejected(
                    transfer_id=self.transfer_id,
                    event_id=event.event_id,
                )
            )
            return False

        accepted = replace(event, arrival_order=len(self.entries) + 1)
        self.entries.append(accepted)
        self.seen_event_ids.add(accepted.event_id)
        self._new_entries.append(accepted)
        return True

    def derive(self, cause: str = "event") -> Transfer:
        """
        Rebuild the derived Transfer from the full history.

        This domain method raises TransferUpdated, which is published to
        external subscribers once the unit of work commits.
        """
        ordered = status.sort_events(self.entries)
        core = status.derive(self.transfer_id, ordered)
        warnings = anomalies.detect(ordered)

        transfer = Transfer(
            transfer_id=self.transfer_id,
            current_status=core.current_status,
            is_terminal=core.is_terminal,
            has_warnings=len(warnings) > 0,
            last_updated=core.last_updated,
            event_count=core.event_count,
            warnings=tuple(warnings),
            events=tuple(ordered),
            rejected_duplicates=tuple(self.rejected_duplicates),
        )

        self.events.append(
            TransferUpdated(
                transfer_id=self.transfer_id,
                current_status=transfer.current_status.value,
                is_terminal=transfer.is_terminal,
                event_count=transfer.event_count,
                warning_types=[w.type.value for w in warnings],
                cause=cause,
            )
        )
        return transfer

    def pull_uncommitted(self) -> Tuple[List[TransferEvent], List[str]]:
        """Hand over entries and rejections recorded since the last pull."""
        entries, duplicates = self._new_entries, self._new_duplicates
        self._new_entries, self._new_duplicates = [], []
        return entries, duplicates
