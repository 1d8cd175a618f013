"""Public targeting operations: ownership checks, graph mutation and history."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from swapcore.domain.errors import AuthorizationError, NotFoundError
from swapcore.domain.model import REASON_TARGET_WITHDRAWN, PageRequest, TargetingEventKind
from swapcore.domain.notifications import NotificationKind
from swapcore.domain.proposals.lifecycle import retire_offers_between
from swapcore.domain.proposals.resolver import ProposalResolver
from swapcore.domain.targeting.graph import TargetGraphStore
from swapcore.domain.targeting.history import record_targeting_event
from swapcore.domain.targeting.validation import validate_targeting

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from swapcore.domain.context import CoreContext
    from swapcore.domain.model import Page, Swap, TargetEdge, TargetingEvent
    from swapcore.domain.notifications import Outbox
    from swapcore.domain.ports.unit_of_work import SwapUnitOfWork
    from swapcore.domain.targeting.validation import TargetingValidation

log = logging.getLogger(__name__)


def _require_swap(uow: SwapUnitOfWork, swap_id: UUID) -> Swap:
    swap = uow.repositories.swaps.get(swap_id)
    if swap is None:
        raise NotFoundError(f"Swap {swap_id} does not exist")
    return swap


class TargetingCoordinator:
    def __init__(self, context: CoreContext) -> None:
        self._context = context
        self._auctions = ProposalResolver(context)

    def _graph(self, uow: SwapUnitOfWork, now: datetime) -> TargetGraphStore:
        return TargetGraphStore(
            uow, now=now, max_chain_length=self._context.config.max_chain_length
        )

    def target_swap(self, source_id: UUID, target_id: UUID, acting_user_id: UUID) -> TargetEdge:
        """Point ``source_id`` at ``target_id`` on behalf of the source owner."""

        self._auctions.close_if_due(target_id)
        reference = self._context.ledger_reference(
            "swap.targeted", source_id, {"target_swap_id": str(target_id)}
        )

        def operation(uow: SwapUnitOfWork, outbox: Outbox) -> TargetEdge:
            now = self._context.now()
            source = _require_swap(uow, source_id)
            target = _require_swap(uow, target_id)
            validate_targeting(source, target, acting_user_id, now).raise_first()
            edge = self._graph(uow, now).add_edge(
                source_id, target_id, ledger_reference=reference
            )
            record_targeting_event(
                uow,
                TargetingEventKind.TARGETED,
                source_swap_id=source_id,
                target_swap_id=target_id,
                actor_id=acting_user_id,
                now=now,
            )
            outbox.add(
                NotificationKind.TARGETED,
                edge.id,
                source.owner_id,
                target.owner_id,
                source_swap_id=source_id,
                target_swap_id=target_id,
            )
            return edge

        edge = self._context.run(operation)
        log.info("Swap %s now targets swap %s", source_id, target_id)
        return edge

    def retarget_swap(
        self, source_id: UUID, new_target_id: UUID, acting_user_id: UUID
    ) -> TargetEdge:
        """Replace the current target of ``source_id``; nothing changes if the new edge fails."""

        self._auctions.close_if_due(new_target_id)
        reference = self._context.ledger_reference(
            "swap.retargeted", source_id, {"target_swap_id": str(new_target_id)}
        )

        def operation(uow: SwapUnitOfWork, outbox: Outbox) -> TargetEdge:
            now = self._context.now()
            source = _require_swap(uow, source_id)
            target = _require_swap(uow, new_target_id)
            validate_targeting(source, target, acting_user_id, now).raise_first()
            previous, edge = self._graph(uow, now).supersede(
                source_id, new_target_id, ledger_reference=reference
            )
            record_targeting_event(
                uow,
                TargetingEventKind.RETARGETED,
                source_swap_id=source_id,
                target_swap_id=new_target_id,
                previous_target_swap_id=previous.target_swap_id,
                actor_id=acting_user_id,
                now=now,
            )
            retire_offers_between(
                uow.repositories,
                offered_swap_id=source_id,
                receiving_swap_id=previous.target_swap_id,
                reason=REASON_TARGET_WITHDRAWN,
                now=now,
                outbox=outbox,
            )
            previous_target = uow.repositories.swaps.get(previous.target_swap_id)
            outbox.add(
                NotificationKind.RETARGETED,
                edge.id,
                source.owner_id,
                target.owner_id,
                previous_target.owner_id if previous_target is not None else None,
                source_swap_id=source_id,
                target_swap_id=new_target_id,
                previous_target_swap_id=previous.target_swap_id,
            )
            return edge

        edge = self._context.run(operation)
        log.info("Swap %s retargeted to swap %s", source_id, new_target_id)
        return edge

    def remove_target(self, source_id: UUID, acting_user_id: UUID) -> None:
        def operation(uow: SwapUnitOfWork, outbox: Outbox) -> None:
            now = self._context.now()
            source = _require_swap(uow, source_id)
            if source.owner_id != acting_user_id:
                raise AuthorizationError(f"User {acting_user_id} does not own swap {source_id}")
            removed = self._graph(uow, now).remove_edge(source_id)
            if removed is None:
                raise NotFoundError(f"Swap {source_id} has no active target")
            record_targeting_event(
                uow,
                TargetingEventKind.REMOVED,
                source_swap_id=source_id,
                target_swap_id=None,
                previous_target_swap_id=removed.target_swap_id,
                actor_id=acting_user_id,
                now=now,
            )
            retire_offers_between(
                uow.repositories,
                offered_swap_id=source_id,
                receiving_swap_id=removed.target_swap_id,
                reason=REASON_TARGET_WITHDRAWN,
                now=now,
                outbox=outbox,
            )
            target = uow.repositories.swaps.get(removed.target_swap_id)
            outbox.add(
                NotificationKind.TARGET_REMOVED,
                removed.id,
                source.owner_id,
                target.owner_id if target is not None else None,
                source_swap_id=source_id,
                previous_target_swap_id=removed.target_swap_id,
            )

        self._context.run(operation)
        log.info("Swap %s no longer targets any swap", source_id)

    def check_targeting(
        self, source_id: UUID, target_id: UUID, acting_user_id: UUID
    ) -> TargetingValidation:
        """Report every restriction without changing anything."""

        def operation(uow: SwapUnitOfWork, _outbox: Outbox) -> TargetingValidation:
            source = _require_swap(uow, source_id)
            target = _require_swap(uow, target_id)
            return validate_targeting(source, target, acting_user_id, self._context.now())

        return self._context.run(operation)

    def get_swap_target(self, swap_id: UUID) -> TargetEdge | None:
        def operation(uow: SwapUnitOfWork, _outbox: Outbox) -> TargetEdge | None:
            _require_swap(uow, swap_id)
            return uow.repositories.edges.active_for_source(swap_id)

        return self._context.run(operation)

    def list_incoming_targets(self, swap_id: UUID) -> list[TargetEdge]:
        def operation(uow: SwapUnitOfWork, _outbox: Outbox) -> list[TargetEdge]:
            _require_swap(uow, swap_id)
            return list(uow.repositories.edges.active_for_target(swap_id))

        return self._context.run(operation)

    def list_targeting_history(
        self, swap_id: UUID, page: int | PageRequest = 1
    ) -> Page[TargetingEvent]:
        """Events where ``swap_id`` is source, target or previous target, newest first."""

        request = (
            page
            if isinstance(page, PageRequest)
            else PageRequest(page=page, size=self._context.config.history_page_size)
        )

        def operation(uow: SwapUnitOfWork, _outbox: Outbox) -> Page[TargetingEvent]:
            _require_swap(uow, swap_id)
            return uow.repositories.history.page_for_swap(swap_id, request)

        return self._context.run(operation)


__all__ = ["TargetingCoordinator"]
