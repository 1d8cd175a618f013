"""SQLAlchemy-backed unit of work for the swap core."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Literal

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from swapcore.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from swapcore.adapters.sqlalchemy.repositories import (
    SqlAlchemyProposalRepository,
    SqlAlchemySettlementRepository,
    SqlAlchemySwapRepository,
    SqlAlchemyTargetEdgeRepository,
    SqlAlchemyTargetingEventRepository,
)
from swapcore.config.storage import get_database_config
from swapcore.domain.errors import StaleVersionError, SwapCoreError, TransientStoreError
from swapcore.domain.ports.unit_of_work import RepositoryCollection, SwapRepositories

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

# writers wait this long for a SQLite lock before the runner sees a transient error
SQLITE_BUSY_TIMEOUT_SECONDS: Final[float] = 5.0


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call swapcore.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the SQLAlchemy engine, mappers, tables and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or _create_engine(database_uri or get_database_config().uri)
    start_mappers()
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine
    return resolved_engine


def _create_engine(uri: str) -> Engine:
    connect_args: dict[str, object] = {}
    if make_url(uri).get_backend_name() == "sqlite":
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT_SECONDS
    return create_engine(uri, future=True, connect_args=connect_args)


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


def translate_store_error(exc: BaseException) -> SwapCoreError | None:
    """Map driver/ORM failures onto the errors the unit-of-work runner retries."""

    if isinstance(exc, StaleDataError | IntegrityError):
        return StaleVersionError(str(exc))
    if isinstance(exc, OperationalError):
        return TransientStoreError(str(exc))
    return None


@contextmanager
def _translated_errors() -> Iterator[None]:
    try:
        yield
    except (StaleDataError, IntegrityError) as exc:
        raise StaleVersionError(str(exc)) from exc
    except OperationalError as exc:
        raise TransientStoreError(str(exc)) from exc


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self.session_factory: sessionmaker[Session] = session_factory or _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        try:
            if exc_type is not None:
                self.rollback()
        finally:
            self.session.close()
            self.session = None
        translated = translate_store_error(exc_value) if exc_value is not None else None
        if translated is not None:
            # autoflush inside a repository query surfaces ORM errors here
            raise translated from exc_value
        return False

    def flush(self) -> None:
        with _translated_errors():
            self.session.flush()

    def commit(self) -> None:
        with _translated_errors():
            self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemySwapUnitOfWork(BaseSqlAlchemyUnitOfWork[SwapRepositories]):
    """Unit of work managing SQLAlchemy sessions for targeting, proposals and settlement."""

    def _build_repositories(self, session: Session) -> SwapRepositories:
        return SwapRepositories(
            swaps=SqlAlchemySwapRepository(session),
            edges=SqlAlchemyTargetEdgeRepository(session),
            history=SqlAlchemyTargetingEventRepository(session),
            proposals=SqlAlchemyProposalRepository(session),
            settlements=SqlAlchemySettlementRepository(session),
        )


if TYPE_CHECKING:
    from swapcore.domain.ports.unit_of_work import SwapUnitOfWork

    _uow_check: SwapUnitOfWork = SqlAlchemySwapUnitOfWork()
