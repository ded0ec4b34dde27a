import abc
import logging
from typing import Dict, List, Optional, Set

from sqlalchemy import insert, select

from transfers.adapters import orm
from transfers.domain.domain import TransferLog
from transfers.domain.model import Status, TransferEvent, as_utc

logger = logging.getLogger(__name__)


class AbstractRepository(abc.ABC):
    """Ordered event log contract, one TransferLog aggregate per transfer_id."""

    def __init__(self):
        self.seen = set()  # type: Set[TransferLog]

    def add(self, log: TransferLog) -> str:
        self._add(log)
        self.seen.add(log)
        return log.transfer_id

    def get(self, transfer_id: str) -> Optional[TransferLog]:
        log = self._get(transfer_id)
        if log:
            self.seen.add(log)
        return log

    def list_ids(self) -> List[str]:
        return self._list_ids()

    def flush(self) -> None:
        """Persist entries and rejections recorded on the aggregates seen so far."""
        for log in self.seen:
            entries, duplicates = log.pull_uncommitted()
            if entries or duplicates:
                self._flush(log.transfer_id, entries, duplicates)

    @abc.abstractmethod
    def _add(self, log: TransferLog):
        raise NotImplementedError

    @abc.abstractmethod
    def _get(self, transfer_id: str) -> Optional[TransferLog]:
        raise NotImplementedError

    @abc.abstractmethod
    def _list_ids(self) -> List[str]:
        raise NotImplementedError

    @abc.abstractmethod
    def _flush(self, transfer_id: str, entries: List[TransferEvent], duplicates: List[str]):
        raise NotImplementedError


class InMemoryRepository(AbstractRepository):
    """
    Aggregates held in a process-scoped dict.

    The dict is owned by the caller so that every unit of work of the
    process sees the same logs. Aggregates are mutated in place.
    """

    def __init__(self, logs: Dict[str, TransferLog]):
        super().__init__()
        self._logs = logs

    def _add(self, log):
        self._logs[log.transfer_id] = log

    def _get(self, transfer_id):
        return self._logs.get(transfer_id)

    def _list_ids(self) -> List[str]:
        return sorted(self._logs)

    def _flush(self, transfer_id, entries, duplicates):
        # entries already live on the shared aggregate
        logger.debug(f"In-memory log for {transfer_id} holds {len(entries)} new entries")


class SqlAlchemyRepository(AbstractRepository):
    def __init__(self, session):
        super().__init__()
        self.session = session

    def _add(self, log):
        # rows are written by _flush when the unit of work commits
        pass

    def _get(self, transfer_id):
        rows = self.session.execute(
            select(orm.transfer_events)
            .where(orm.transfer_events.c.transfer_id == transfer_id)
            .order_by(orm.transfer_events.c.arrival_order)
        ).all()
        if not rows:
            return None

        rejected = self.session.execute(
            select(orm.rejected_duplicates.c.event_id)
            .where(orm.rejected_duplicates.c.transfer_id == transfer_id)
            .order_by(orm.rejected_duplicates.c.id)
        ).scalars().all()

        entries = [
            TransferEvent(
                transfer_id=row.transfer_id,
                event_id=row.event_id,
                status=Status(row.status),
                timestamp=as_utc(row.timestamp),
                reason=row.reason,
                arrival_order=row.arrival_order,
            )
            for row in rows
        ]
        return TransferLog(transfer_id, entries=entries, rejected_duplicates=rejected)

    def _list_ids(self) -> List[str]:
        return list(
            self.session.execute(
                select(orm.transfer_events.c.transfer_id)
                .distinct()
                .order_by(orm.transfer_events.c.transfer_id)
            ).scalars().all()
        )

    def _flush(self, transfer_id, entries, duplicates):
        if entries:
            self.session.execute(
                insert(orm.transfer_events),
                [
                    dict(
                        transfer_id=e.transfer_id,
                        event_id=e.event_id,
                        status=e.status.value,
                        timestamp=e.timestamp,
                        reason=e.reason,
                        arrival_order=e.arrival_order,
                    )
                    for e in entries
                ],
            )
        if duplicates:
            self.session.execute(
                insert(orm.rejected_duplicates),
                [dict(transfer_id=transfer_id, event_id=event_id) for event_id in duplicates],
            )
        logger.info(f"Flushed {len(entries)} events and {len(duplicates)} rejections for {transfer_id}")
