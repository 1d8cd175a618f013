from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from swapcore.adapters.sqlalchemy.unit_of_work import (
    SQLITE_BUSY_TIMEOUT_SECONDS,
    SqlAlchemySwapUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from swapcore.domain.errors import StaleVersionError, ValidationError
from swapcore.domain.model import TargetEdge
from tests.support.builders import make_swap
from tests.support.fakes import DEFAULT_NOW

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


@pytest.fixture
def file_engine(tmp_path: Path) -> Engine:
    return create_engine(f"sqlite+pysqlite:///{tmp_path / 'swapcore.db'}", future=True)


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemySwapUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_startup_reads_database_uri_from_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("DATABASE_URI", f"sqlite+pysqlite:///{tmp_path / 'env.db'}")

    engine = startup(force=True)

    assert str(engine.url).endswith("env.db")
    assert (tmp_path / "env.db").exists()


def test_startup_sets_sqlite_busy_timeout(tmp_path: Path) -> None:
    engine = startup(database_uri=f"sqlite+pysqlite:///{tmp_path / 'busy.db'}", force=True)

    with engine.connect() as connection:
        busy_ms = connection.exec_driver_sql("PRAGMA busy_timeout").scalar_one()

    assert busy_ms == int(SQLITE_BUSY_TIMEOUT_SECONDS * 1000)


def test_unit_of_work_persists_swaps(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    swap = make_swap()

    with SqlAlchemySwapUnitOfWork() as uow:
        uow.repositories.swaps.add(swap)
        uow.commit()

    with SqlAlchemySwapUnitOfWork() as uow:
        loaded = uow.repositories.swaps.get(swap.id)
        assert loaded is not None
        assert loaded.owner_id == swap.owner_id


def test_uncommitted_work_is_rolled_back_on_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    swap = make_swap()

    with pytest.raises(ValidationError), SqlAlchemySwapUnitOfWork() as uow:
        uow.repositories.swaps.add(swap)
        uow.flush()
        raise ValidationError("abort")

    with SqlAlchemySwapUnitOfWork() as uow:
        assert uow.repositories.swaps.get(swap.id) is None


def test_repositories_are_unavailable_outside_the_context(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemySwapUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_concurrent_version_change_raises_stale_version(file_engine: Engine) -> None:
    startup(engine=file_engine, force=True)
    swap = make_swap()
    with SqlAlchemySwapUnitOfWork() as uow:
        uow.repositories.swaps.add(swap)
        uow.commit()

    with SqlAlchemySwapUnitOfWork() as slow, SqlAlchemySwapUnitOfWork() as fast:
        slow_copy = slow.repositories.swaps.get(swap.id)
        fast_copy = fast.repositories.swaps.get(swap.id)
        assert slow_copy is not None
        assert fast_copy is not None

        fast_copy.bump_version(DEFAULT_NOW)
        fast.commit()

        slow_copy.bump_version(DEFAULT_NOW)
        with pytest.raises(StaleVersionError):
            slow.commit()

    with SqlAlchemySwapUnitOfWork() as uow:
        stored = uow.repositories.swaps.get(swap.id)
        assert stored is not None
        assert stored.version == 2


def test_duplicate_active_edge_surfaces_as_stale_version(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    a, b, c = make_swap(), make_swap(), make_swap()

    with SqlAlchemySwapUnitOfWork() as uow:
        for swap in (a, b, c):
            uow.repositories.swaps.add(swap)
        uow.repositories.edges.add(TargetEdge(source_swap_id=a.id, target_swap_id=b.id))
        uow.commit()

    with pytest.raises(StaleVersionError), SqlAlchemySwapUnitOfWork() as uow:
        uow.repositories.edges.add(TargetEdge(source_swap_id=a.id, target_swap_id=c.id))
        uow.flush()
