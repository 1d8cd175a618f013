"""Directed targeting graph with out-degree <= 1 and no cycles.

Because every swap has at most one active outgoing edge, the graph is a forest of
chains. Detecting whether ``source -> target`` would close a cycle is a walk along
the chain starting at ``target``; cost grows with the chain length only.

Concurrent writers are serialised through swap versions: the source swap is
version-bumped and flushed before the walk, and so is the chain terminus, so two
edges racing to close the same cycle cannot both commit.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from swapcore.domain.errors import ConflictError, CycleError, NotFoundError, ValidationError
from swapcore.domain.model import TargetEdge

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from datetime import datetime
    from uuid import UUID

    from swapcore.domain.model import Swap
    from swapcore.domain.ports.persistence import TargetEdgeRepository
    from swapcore.domain.ports.unit_of_work import SwapUnitOfWork

log = logging.getLogger(__name__)


class TargetGraphStore:
    def __init__(self, uow: SwapUnitOfWork, *, now: datetime, max_chain_length: int) -> None:
        self._uow = uow
        self._now = now
        self._max_chain_length = max_chain_length

    @property
    def _edges(self) -> TargetEdgeRepository:
        return self._uow.repositories.edges

    # Reads ---------------------------------------------------------------------

    def active_target(self, source_id: UUID) -> TargetEdge | None:
        return self._edges.active_for_source(source_id)

    def incoming(self, target_id: UUID) -> Sequence[TargetEdge]:
        return self._edges.active_for_target(target_id)

    def walk(self, start_id: UUID) -> Iterator[UUID]:
        """Yield swap ids reachable from ``start_id`` along active edges, ``start_id`` first."""

        seen: set[UUID] = set()
        current: UUID | None = start_id
        while current is not None:
            if current in seen:
                raise ConflictError(
                    f"Active edges already contain a cycle through swap {current}"
                )
            if len(seen) > self._max_chain_length:
                raise ValidationError(
                    f"Targeting chain from {start_id} exceeds {self._max_chain_length} swaps"
                )
            seen.add(current)
            yield current
            edge = self._edges.active_for_source(current)
            current = edge.target_swap_id if edge is not None else None

    def chain_from(self, swap_id: UUID) -> list[UUID]:
        return list(self.walk(swap_id))

    # Mutations -----------------------------------------------------------------

    def add_edge(
        self, source_id: UUID, target_id: UUID, *, ledger_reference: str | None = None
    ) -> TargetEdge:
        if source_id == target_id:
            raise ValidationError("A swap cannot target itself")
        existing = self._edges.active_for_source(source_id)
        if existing is not None:
            raise ConflictError(
                f"Swap {source_id} already targets swap {existing.target_swap_id}"
            )
        source = self._require(source_id)
        self._require(target_id)
        source.bump_version(self._now)
        self._uow.flush()
        return self._link(source, target_id, ledger_reference)

    def remove_edge(self, source_id: UUID) -> TargetEdge | None:
        edge = self._edges.active_for_source(source_id)
        if edge is None:
            return None
        self._require(source_id).bump_version(self._now)
        edge.remove(self._now)
        self._uow.flush()
        log.debug("Removed edge %s -> %s", edge.source_swap_id, edge.target_swap_id)
        return edge

    def supersede(
        self, source_id: UUID, new_target_id: UUID, *, ledger_reference: str | None = None
    ) -> tuple[TargetEdge, TargetEdge]:
        """Replace the active edge of ``source_id``; returns ``(previous, new)``.

        On any failure the caller's unit of work must roll back, leaving ``previous``
        active.
        """

        if source_id == new_target_id:
            raise ValidationError("A swap cannot target itself")
        previous = self._edges.active_for_source(source_id)
        if previous is None:
            raise NotFoundError(f"Swap {source_id} has no active target to replace")
        if previous.target_swap_id == new_target_id:
            raise ConflictError(f"Swap {source_id} already targets swap {new_target_id}")
        source = self._require(source_id)
        self._require(new_target_id)
        source.bump_version(self._now)
        previous.supersede(self._now)
        self._uow.flush()
        return previous, self._link(source, new_target_id, ledger_reference)

    # Internals -----------------------------------------------------------------

    def _link(self, source: Swap, target_id: UUID, ledger_reference: str | None) -> TargetEdge:
        terminus = target_id
        for swap_id in self.walk(target_id):
            if swap_id == source.id:
                raise CycleError(
                    f"Targeting {target_id} from {source.id} would close a cycle"
                )
            terminus = swap_id
        self._require(terminus).bump_version(self._now)
        edge = TargetEdge(
            source_swap_id=source.id,
            target_swap_id=target_id,
            created_at=self._now,
            updated_at=self._now,
            ledger_reference=ledger_reference,
        )
        self._edges.add(edge)
        self._uow.flush()
        log.debug("Added edge %s -> %s", source.id, target_id)
        return edge

    def _require(self, swap_id: UUID) -> Swap:
        swap = self._uow.repositories.swaps.get(swap_id)
        if swap is None:
            raise NotFoundError(f"Swap {swap_id} does not exist")
        return swap


__all__ = ["TargetGraphStore"]
