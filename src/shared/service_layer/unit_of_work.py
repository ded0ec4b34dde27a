from __future__ import annotations

"""Abstract Unit of Work pattern for coordinating operations across repositories."""

import abc
from typing import Iterable, List

from shared.domain.commands import Event


class AbstractUnitOfWork(abc.ABC):
    """
    Abstract Unit of Work for coordinating operations across repositories.

    Aggregates raise domain events on their `events` list. Committing moves
    them onto the unit of work, where the message bus collects them.
    """

    def __init__(self):
        self.events: List[Event] = []

    def __enter__(self) -> AbstractUnitOfWork:
        return self

    def __exit__(self, *args):
        self.rollback()

    def commit(self):
        self._commit()
        for aggregate in self._seen_aggregates():
            while aggregate.events:
                self.events.append(aggregate.events.pop(0))

    def collect_new_events(self) -> List[Event]:
        """Return and clear events harvested by commits."""
        events = self.events[:]
        self.events.clear()
        return events

    @abc.abstractmethod
    def _seen_aggregates(self) -> Iterable:
        raise NotImplementedError

    @abc.abstractmethod
    def _commit(self):
        raise NotImplementedError

    @abc.abstractmethod
    def rollback(self):
        raise NotImplementedError
