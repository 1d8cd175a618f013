"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from swapcore.domain.ports.persistence import (
        ProposalRepository,
        SettlementRepository,
        SwapRepository,
        TargetEdgeRepository,
        TargetingEventRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection.

    Everything written between ``__enter__`` and ``commit`` lands atomically; leaving
    the block with an exception rolls every write back.
    """

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def flush(self) -> None:
        """Send pending writes so later reads in this unit run after them."""
        ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class SwapRepositories(RepositoryCollection):
    """Repositories required by targeting, resolution and settlement."""

    swaps: SwapRepository
    edges: TargetEdgeRepository
    history: TargetingEventRepository
    proposals: ProposalRepository
    settlements: SettlementRepository


type SwapUnitOfWork = UnitOfWork[SwapRepositories]
