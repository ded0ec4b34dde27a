# pylint: disable=attribute-defined-outside-init
"""Unit of Work implementations for the transfer tracker."""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

import config
from shared.service_layer.unit_of_work import AbstractUnitOfWork
from transfers.adapters import orm, repository
from transfers.adapters.read_model import TransferCache, TransferLocks, VersionTracker
from transfers.domain.domain import TransferLog

logger = logging.getLogger(__name__)


@dataclass
class TransferRuntime:
    """
    Process-scoped state shared by every unit of work.

    The cache and version are derived and disposable. `logs` backs the
    in-memory event log and stays empty with the SQL backend.
    """
    cache: TransferCache = field(default_factory=TransferCache)
    versions: VersionTracker = field(default_factory=VersionTracker)
    locks: TransferLocks = field(default_factory=TransferLocks)
    logs: Dict[str, TransferLog] = field(default_factory=dict)


class AbstractTransferUnitOfWork(AbstractUnitOfWork):
    transfers: repository.AbstractRepository

    def __init__(self, runtime: TransferRuntime):
        super().__init__()
        self.runtime = runtime
        self.cache = runtime.cache
        self.versions = runtime.versions
        self.locks = runtime.locks

    def _seen_aggregates(self):
        return self.transfers.seen


class InMemoryUnitOfWork(AbstractTransferUnitOfWork):
    """Event log held in process memory, restart discards everything."""

    def __enter__(self):
        self.transfers = repository.InMemoryRepository(self.runtime.logs)
        return super().__enter__()

    def _commit(self):
        self.transfers.flush()

    def rollback(self):
        # appends on shared aggregates are immediate, nothing to undo
        pass


class SqlAlchemyUnitOfWork(AbstractTransferUnitOfWork):
    def __init__(self, runtime: TransferRuntime, session_factory=None):
        super().__init__(runtime)
        self.session_factory = session_factory or default_session_factory()

    def __enter__(self):
        self.session = self.session_factory()  # type: Session
        self.transfers = repository.SqlAlchemyRepository(self.session)
        return super().__enter__()

    def __exit__(self, *args):
        super().__exit__(*args)
        self.session.close()

    def _commit(self):
        self.transfers.flush()
        self.session.commit()

    def rollback(self):
        self.session.rollback()


def default_session_factory():
    engine = create_engine(config.get_database_uri())
    orm.create_tables(engine)
    return sessionmaker(bind=engine)


def unit_of_work_factory(
    runtime: TransferRuntime,
    backend: str = None,
) -> Callable[[], AbstractTransferUnitOfWork]:
    """Build a factory returning a fresh unit of work per request."""
    backend = backend or config.get_event_store_backend()
    logger.info(f"Using {backend} event log")

    if backend == "memory":
        return lambda: InMemoryUnitOfWork(runtime)
    if backend == "sql":
        session_factory = default_session_factory()
        return lambda: SqlAlchemyUnitOfWork(runtime, session_factory=session_factory)

    raise ValueError(f"Unknown event store backend: {backend}")
