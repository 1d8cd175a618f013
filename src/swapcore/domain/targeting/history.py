"""Best-effort targeting history."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from swapcore.domain.model import TargetingEvent

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from swapcore.domain.model import TargetingEventKind
    from swapcore.domain.ports.unit_of_work import SwapUnitOfWork

log = logging.getLogger(__name__)


def record_targeting_event(
    uow: SwapUnitOfWork,
    kind: TargetingEventKind,
    *,
    source_swap_id: UUID,
    target_swap_id: UUID | None,
    previous_target_swap_id: UUID | None = None,
    actor_id: UUID | None,
    now: datetime,
) -> TargetingEvent | None:
    """Append a history entry; a failure here never fails the targeting change itself."""

    # errors from the targeting change must surface before the guarded write
    uow.flush()
    try:
        event = TargetingEvent(
            kind=kind,
            source_swap_id=source_swap_id,
            target_swap_id=target_swap_id,
            previous_target_swap_id=previous_target_swap_id,
            actor_id=actor_id,
            created_at=now,
        )
        uow.repositories.history.add(event)
    except Exception:
        log.exception("Could not record %s history for swap %s", kind, source_swap_id)
        return None
    return event
