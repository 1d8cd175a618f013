from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from swapcore.adapters.sqlalchemy import create_all_tables, start_mappers
from swapcore.adapters.sqlalchemy.unit_of_work import SqlAlchemySwapUnitOfWork, shutdown, startup
from swapcore.app import SwapCore
from swapcore.config.resolution import ResolutionConfig
from swapcore.domain.context import CoreContext
from tests.support.fakes import FakeBookingLookup, FakeClock, FakeLedger, RecordingDispatcher

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemySwapUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemySwapUnitOfWork:
        return SqlAlchemySwapUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def bookings() -> FakeBookingLookup:
    return FakeBookingLookup()


@pytest.fixture
def resolution_config() -> ResolutionConfig:
    return ResolutionConfig(backoff_seconds=0.0, max_backoff_seconds=0.0)


@pytest.fixture
def core_context(
    sqlite_unit_of_work: Callable[[], SqlAlchemySwapUnitOfWork],
    clock: FakeClock,
    dispatcher: RecordingDispatcher,
    ledger: FakeLedger,
    bookings: FakeBookingLookup,
    resolution_config: ResolutionConfig,
) -> CoreContext:
    return CoreContext(
        uow_factory=sqlite_unit_of_work,
        clock=clock,
        config=resolution_config,
        notifier=dispatcher,
        ledger=ledger,
        bookings=bookings,
        sleep=no_sleep,
    )


@pytest.fixture
def swap_core(core_context: CoreContext) -> SwapCore:
    return SwapCore(core_context)
