# pylint: disable=redefined-outer-name
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from transfers.adapters import orm, redis_adapter
from transfers.service_layer.unit_of_work import (
    InMemoryUnitOfWork,
    SqlAlchemyUnitOfWork,
    TransferRuntime,
)


@pytest.fixture(autouse=True)
def no_publishing(monkeypatch):
    """Keep tests off any real Redis unless a test opts in."""
    monkeypatch.setenv("PUBLISH_TRANSFER_EVENTS", "false")
    yield
    redis_adapter.set_client(None)


@pytest.fixture
def runtime():
    return TransferRuntime()


@pytest.fixture
def uow_factory(runtime):
    """Fresh in-memory unit of work per call, all sharing one runtime."""
    return lambda: InMemoryUnitOfWork(runtime)


@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    orm.create_tables(engine)
    yield engine
    orm.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def sqlite_session_factory(sqlite_engine):
    """Create SQLite in-memory database for fast testing."""
    return sessionmaker(bind=sqlite_engine)


@pytest.fixture
def sql_uow_factory(runtime, sqlite_session_factory):
    return lambda: SqlAlchemyUnitOfWork(runtime, session_factory=sqlite_session_factory)


@pytest.fixture
def api_client(uow_factory):
    from transfers.entrypoints.transfer_api import create_app

    with TestClient(create_app(uow_factory)) as client:
        yield client
