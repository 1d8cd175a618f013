"""Targeting edges and their audit trail."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from swapcore.domain.errors import ConflictError
from swapcore.domain.model.entity import Entity
from swapcore.domain.model.enums import EdgeStatus, TargetingEventKind

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class TargetEdge(Entity):
    """Directed pointer ``source -> target``; only ``active`` edges count for invariants."""

    source_swap_id: UUID
    target_swap_id: UUID
    status: EdgeStatus = EdgeStatus.ACTIVE
    updated_at: datetime | None = None
    ledger_reference: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status is EdgeStatus.ACTIVE

    def supersede(self, now: datetime) -> None:
        self._close(EdgeStatus.SUPERSEDED, now)

    def remove(self, now: datetime) -> None:
        self._close(EdgeStatus.REMOVED, now)

    def _close(self, status: EdgeStatus, now: datetime) -> None:
        if not self.is_active:
            raise ConflictError(f"Edge {self.id} is already {self.status}")
        self.status = status
        self.updated_at = now


@dataclass(eq=False, kw_only=True)
class TargetingEvent(Entity):
    """Immutable history entry written alongside each targeting mutation."""

    kind: TargetingEventKind
    source_swap_id: UUID
    target_swap_id: UUID | None = None
    previous_target_swap_id: UUID | None = None
    actor_id: UUID | None = None
