from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from swapcore.adapters.sqlalchemy.unit_of_work import SqlAlchemySwapUnitOfWork, shutdown, startup
from swapcore.app import SwapCore
from swapcore.config.resolution import ResolutionConfig
from swapcore.domain.context import CoreContext
from tests.support.fakes import FakeClock

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def race_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def threaded_core(tmp_path: Path, race_clock: FakeClock) -> Iterator[SwapCore]:
    """Swap core over a file-backed SQLite database shared by several threads."""

    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 2},
        future=True,
    )
    startup(engine=engine, force=True)
    context = CoreContext(
        uow_factory=SqlAlchemySwapUnitOfWork,
        clock=race_clock,
        config=ResolutionConfig(
            optimistic_attempts=10,
            transient_attempts=10,
            backoff_seconds=0.01,
            max_backoff_seconds=0.2,
        ),
    )
    try:
        yield SwapCore(context)
    finally:
        shutdown()
