"""Registering and cancelling swap listings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from swapcore.domain.auction_clock import is_closed
from swapcore.domain.errors import AuthorizationError, NotFoundError, ValidationError
from swapcore.domain.model import (
    REASON_SWAP_CANCELLED,
    AcceptanceStrategy,
    PaymentType,
    Swap,
    TargetingEventKind,
)
from swapcore.domain.notifications import NotificationKind
from swapcore.domain.proposals.lifecycle import retire_pending
from swapcore.domain.proposals.resolver import ProposalResolver
from swapcore.domain.targeting.graph import TargetGraphStore
from swapcore.domain.targeting.history import record_targeting_event

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID

    from swapcore.domain.context import CoreContext
    from swapcore.domain.notifications import Outbox
    from swapcore.domain.ports.unit_of_work import SwapUnitOfWork

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class SwapDraft:
    owner_id: UUID
    acceptance_strategy: AcceptanceStrategy = AcceptanceStrategy.FIRST_MATCH
    payment_types: frozenset[PaymentType] = field(
        default_factory=lambda: frozenset({PaymentType.BOOKING})
    )
    auction_end_at: datetime | None = None
    min_cash_amount: Decimal | None = None
    max_cash_amount: Decimal | None = None
    currency: str | None = None
    booking_id: UUID | None = None


class SwapService:
    def __init__(self, context: CoreContext) -> None:
        self._context = context
        self._auctions = ProposalResolver(context)

    def create_swap(self, draft: SwapDraft) -> Swap:
        now = self._context.now()
        if draft.auction_end_at is not None and is_closed(now, draft.auction_end_at):
            raise ValidationError("Auction end time must lie in the future")
        if draft.booking_id is not None and self._context.bookings is not None:
            booking = self._context.bookings.get_booking(draft.booking_id)
            if booking is None or booking.owner_id != draft.owner_id:
                raise ValidationError(f"Booking {draft.booking_id} is not available to the owner")
            if not booking.available:
                raise ValidationError(f"Booking {draft.booking_id} is no longer available")
        swap = Swap(
            owner_id=draft.owner_id,
            acceptance_strategy=draft.acceptance_strategy,
            payment_types=frozenset(draft.payment_types),
            auction_end_at=draft.auction_end_at,
            min_cash_amount=draft.min_cash_amount,
            max_cash_amount=draft.max_cash_amount,
            currency=draft.currency or self._context.config.default_currency,
            booking_id=draft.booking_id,
            created_at=now,
            updated_at=now,
        )

        def operation(uow: SwapUnitOfWork, _outbox: Outbox) -> Swap:
            uow.repositories.swaps.add(swap)
            return swap

        created = self._context.run(operation)
        log.info("Registered %s swap %s", created.acceptance_strategy, created.id)
        return created

    def get_swap(self, swap_id: UUID) -> Swap:
        self._auctions.close_if_due(swap_id)

        def operation(uow: SwapUnitOfWork, _outbox: Outbox) -> Swap:
            swap = uow.repositories.swaps.get(swap_id)
            if swap is None:
                raise NotFoundError(f"Swap {swap_id} does not exist")
            return swap

        return self._context.run(operation)

    def cancel_swap(self, swap_id: UUID, acting_user_id: UUID) -> Swap:
        """Withdraw an open swap.

        Pending proposals expire and the swap's own target edge is removed. Settled
        payments are unaffected; refunds go through the gateway.
        """

        self._auctions.close_if_due(swap_id)

        def operation(uow: SwapUnitOfWork, outbox: Outbox) -> Swap:
            now = self._context.now()
            swap = uow.repositories.swaps.get(swap_id)
            if swap is None:
                raise NotFoundError(f"Swap {swap_id} does not exist")
            if swap.owner_id != acting_user_id:
                raise AuthorizationError(f"User {acting_user_id} does not own swap {swap_id}")
            if not swap.is_open:
                raise ValidationError(f"Swap {swap_id} is {swap.status}")

            graph = TargetGraphStore(
                uow, now=now, max_chain_length=self._context.config.max_chain_length
            )
            removed = graph.remove_edge(swap_id)
            if removed is not None:
                record_targeting_event(
                    uow,
                    TargetingEventKind.REMOVED,
                    source_swap_id=swap_id,
                    target_swap_id=None,
                    previous_target_swap_id=removed.target_swap_id,
                    actor_id=acting_user_id,
                    now=now,
                )
            retire_pending(
                uow.repositories,
                swap,
                reason=REASON_SWAP_CANCELLED,
                offer_reason=REASON_SWAP_CANCELLED,
                actor_id=None,
                now=now,
                outbox=outbox,
                expire=True,
            )
            swap.cancel(now)
            outbox.add(NotificationKind.SWAP_CANCELLED, swap.id, swap.owner_id)
            return swap

        cancelled = self._context.run(operation)
        log.info("Swap %s cancelled", swap_id)
        return cancelled


__all__ = ["SwapDraft", "SwapService"]
