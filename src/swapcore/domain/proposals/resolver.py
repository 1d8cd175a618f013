"""Proposal lifecycle for first-match and auction swaps.

Auction swaps close lazily: every operation that references a swap first closes
its auction when the window has passed, in a unit of work of its own, and only then
runs. ``close_expired_auctions`` drives the same path for auctions nobody touches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from swapcore.domain.auction_clock import AuctionStatus, evaluate, is_closed
from swapcore.domain.errors import (
    AuthorizationError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    SwapCoreError,
    ValidationError,
)
from swapcore.domain.model import (
    REASON_ANOTHER_ACCEPTED,
    REASON_AUCTION_CLOSED,
    REASON_MATCHED_ELSEWHERE,
    REASON_OFFER_UNAVAILABLE,
    PaymentType,
    Proposal,
    ProposalPayload,
    ProposalStatus,
    SwapStatus,
)
from swapcore.domain.notifications import NotificationKind
from swapcore.domain.proposals.lifecycle import retire_pending
from swapcore.domain.proposals.ranking import rank
from swapcore.domain.proposals.validation import validate_proposal
from swapcore.domain.settlement import settle_acceptance

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from swapcore.domain.context import CoreContext
    from swapcore.domain.model import Swap
    from swapcore.domain.notifications import Outbox
    from swapcore.domain.ports.collaborators import BookingSummary
    from swapcore.domain.ports.unit_of_work import SwapUnitOfWork

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AuctionClosure:
    """Outcome of ``close_auction``; ``closed_now`` is ``False`` for repeated calls."""

    swap_id: UUID
    status: SwapStatus
    winner_id: UUID | None
    rejected_ids: tuple[UUID, ...] = ()
    closed_now: bool = False


def _require_swap(uow: SwapUnitOfWork, swap_id: UUID) -> Swap:
    swap = uow.repositories.swaps.get(swap_id)
    if swap is None:
        raise NotFoundError(f"Swap {swap_id} does not exist")
    return swap


def _require_proposal(uow: SwapUnitOfWork, proposal_id: UUID) -> Proposal:
    proposal = uow.repositories.proposals.get(proposal_id)
    if proposal is None:
        raise NotFoundError(f"Proposal {proposal_id} does not exist")
    return proposal


def _auction_due(swap: Swap, now: datetime) -> bool:
    return swap.is_auction and swap.is_open and is_closed(now, swap.auction_end_at)


class ProposalResolver:
    def __init__(self, context: CoreContext) -> None:
        self._context = context

    # Creation ------------------------------------------------------------------

    def create_proposal(
        self,
        source_swap_id: UUID,
        proposer_id: UUID,
        payment_type: PaymentType,
        payload: ProposalPayload,
    ) -> Proposal:
        """Submit a pending proposal to ``source_swap_id``."""

        try:
            payment_type = PaymentType(payment_type)
        except ValueError as exc:
            raise ValidationError(f"Unknown proposal type: {payment_type!r}") from exc
        self.close_if_due(source_swap_id)
        booking, booking_checked = self._lookup_booking(payment_type, payload)
        reference = self._context.ledger_reference(
            "proposal.created",
            source_swap_id,
            {"proposer_id": str(proposer_id), "type": str(payment_type)},
        )

        def operation(uow: SwapUnitOfWork, outbox: Outbox) -> Proposal:
            now = self._context.now()
            swap = _require_swap(uow, source_swap_id)
            if swap.is_auction and is_closed(now, swap.auction_end_at):
                raise ExpiredError(f"The auction for swap {swap.id} has ended")
            if not swap.is_open:
                raise ValidationError(f"Swap {swap.id} is {swap.status}")
            offered = (
                uow.repositories.swaps.get(payload.offered_swap_id)
                if payload.offered_swap_id is not None
                else None
            )
            validate_proposal(
                swap,
                proposer_id,
                payment_type,
                payload,
                offered_swap=offered,
                booking=booking,
                booking_checked=booking_checked,
            ).raise_first()
            duplicate = uow.repositories.proposals.pending_for_proposer(swap.id, proposer_id)
            if duplicate is not None:
                raise ConflictError(
                    f"User {proposer_id} already has pending proposal {duplicate.id}"
                )

            booking_id = payload.booking_id
            if booking_id is None and offered is not None:
                booking_id = offered.booking_id
            proposal = Proposal(
                source_swap_id=swap.id,
                proposer_id=proposer_id,
                target_owner_id=swap.owner_id,
                type=payment_type,
                target_swap_id=offered.id if offered is not None else None,
                cash_amount=payload.cash_amount if payment_type is PaymentType.CASH else None,
                currency=swap.currency,
                booking_id=booking_id,
                message=payload.message,
                created_at=now,
                ledger_reference=reference,
            )
            swap.bump_version(now)
            uow.repositories.proposals.add(proposal)
            outbox.add(
                NotificationKind.PROPOSAL_CREATED,
                proposal.id,
                swap.owner_id,
                swap_id=swap.id,
                type=payment_type,
            )
            return proposal

        proposal = self._context.run(operation)
        log.info(
            "Proposal %s (%s) submitted to swap %s", proposal.id, payment_type, source_swap_id
        )
        return proposal

    def _lookup_booking(
        self, payment_type: PaymentType, payload: ProposalPayload
    ) -> tuple[BookingSummary | None, bool]:
        lookup = self._context.bookings
        if payment_type is not PaymentType.BOOKING or payload.booking_id is None or lookup is None:
            return None, False
        return lookup.get_booking(payload.booking_id), True

    # Responses -----------------------------------------------------------------

    def accept_proposal(self, proposal_id: UUID, acting_user_id: UUID) -> Proposal:
        """Accept a first-match proposal; repeating the call returns the same result."""

        self._close_due_for_proposal(proposal_id)

        def operation(uow: SwapUnitOfWork, outbox: Outbox) -> Proposal:
            now = self._context.now()
            proposal = _require_proposal(uow, proposal_id)
            swap = _require_swap(uow, proposal.source_swap_id)
            if swap.owner_id != acting_user_id:
                raise AuthorizationError(f"User {acting_user_id} does not own swap {swap.id}")
            if proposal.status is ProposalStatus.ACCEPTED:
                return proposal
            if not proposal.is_pending:
                raise ConflictError(f"Proposal {proposal.id} was already {proposal.status}")
            if swap.is_auction:
                if _auction_due(swap, now):
                    raise ExpiredError(f"The auction for swap {swap.id} has ended")
                raise ValidationError(
                    "Auction proposals cannot be accepted manually; the best one wins at close"
                )
            if not swap.is_open:
                raise ConflictError(f"Swap {swap.id} is {swap.status}")
            self._accept(
                uow,
                swap,
                proposal,
                actor_id=acting_user_id,
                reason=REASON_ANOTHER_ACCEPTED,
                now=now,
                outbox=outbox,
            )
            return proposal

        proposal = self._context.run(operation)
        log.info("Proposal %s accepted on swap %s", proposal.id, proposal.source_swap_id)
        return proposal

    def reject_proposal(self, proposal_id: UUID, acting_user_id: UUID, reason: str) -> Proposal:
        if not reason or not reason.strip():
            raise ValidationError("A rejection reason is required")
        self._close_due_for_proposal(proposal_id)

        def operation(uow: SwapUnitOfWork, outbox: Outbox) -> Proposal:
            now = self._context.now()
            proposal = _require_proposal(uow, proposal_id)
            swap = _require_swap(uow, proposal.source_swap_id)
            if swap.owner_id != acting_user_id:
                raise AuthorizationError(f"User {acting_user_id} does not own swap {swap.id}")
            if _auction_due(swap, now):
                raise ExpiredError(f"The auction for swap {swap.id} has ended")
            proposal.reject(actor_id=acting_user_id, reason=reason.strip(), now=now)
            swap.bump_version(now)
            outbox.add(
                NotificationKind.PROPOSAL_REJECTED,
                proposal.id,
                proposal.proposer_id,
                status=proposal.status,
                reason=proposal.rejection_reason,
            )
            return proposal

        proposal = self._context.run(operation)
        log.info("Proposal %s rejected on swap %s", proposal.id, proposal.source_swap_id)
        return proposal

    def _accept(
        self,
        uow: SwapUnitOfWork,
        swap: Swap,
        proposal: Proposal,
        *,
        actor_id: UUID | None,
        reason: str,
        now: datetime,
        outbox: Outbox,
    ) -> list[Proposal]:
        """Accept ``proposal``, match ``swap`` and settle; returns the rejected siblings."""

        proposal.accept(actor_id=actor_id, now=now)
        swap.mark_matched(now)
        rejected = retire_pending(
            uow.repositories,
            swap,
            reason=reason,
            offer_reason=REASON_MATCHED_ELSEWHERE,
            actor_id=actor_id,
            now=now,
            outbox=outbox,
            keep=proposal.id,
        )
        settle_acceptance(uow.repositories, proposal, swap, now=now, outbox=outbox)
        outbox.add(
            NotificationKind.PROPOSAL_ACCEPTED,
            proposal.id,
            proposal.proposer_id,
            swap.owner_id,
            swap_id=swap.id,
            type=proposal.type,
        )
        return rejected

    # Auctions ------------------------------------------------------------------

    def close_auction(self, swap_id: UUID) -> AuctionClosure:
        """Close a finished auction: best proposal wins, the rest are rejected.

        Idempotent: closing an auction that already closed reports its final state
        without changing anything.
        """

        def operation(uow: SwapUnitOfWork, outbox: Outbox) -> AuctionClosure:
            now = self._context.now()
            swap = _require_swap(uow, swap_id)
            if not swap.is_auction:
                raise ValidationError(f"Swap {swap.id} is not an auction")
            if not swap.is_open:
                return self._closure_of(uow, swap)
            if swap.auction_end_at is not None and evaluate(now, swap.auction_end_at).is_open:
                raise ValidationError(f"The auction for swap {swap.id} is still running")
            return self._close(uow, swap, now, outbox)

        closure = self._context.run(operation)
        if closure.closed_now:
            log.info(
                "Auction %s closed as %s (winner %s)",
                closure.swap_id,
                closure.status,
                closure.winner_id,
            )
        return closure

    def close_if_due(self, swap_id: UUID) -> AuctionClosure | None:
        """Close the auction of ``swap_id`` when its window has passed."""

        def operation(uow: SwapUnitOfWork, outbox: Outbox) -> AuctionClosure | None:
            now = self._context.now()
            swap = uow.repositories.swaps.get(swap_id)
            if swap is None or not _auction_due(swap, now):
                return None
            return self._close(uow, swap, now, outbox)

        closure = self._context.run(operation)
        if closure is not None:
            log.info("Auction %s closed lazily as %s", closure.swap_id, closure.status)
        return closure

    def _close_due_for_proposal(self, proposal_id: UUID) -> None:
        def operation(uow: SwapUnitOfWork, _outbox: Outbox) -> UUID | None:
            proposal = uow.repositories.proposals.get(proposal_id)
            return proposal.source_swap_id if proposal is not None else None

        swap_id = self._context.run(operation)
        if swap_id is not None:
            self.close_if_due(swap_id)

    def close_expired_auctions(self) -> list[AuctionClosure]:
        """Sweep every auction whose window has passed; one unit of work per auction."""

        def due(uow: SwapUnitOfWork, _outbox: Outbox) -> list[UUID]:
            return list(uow.repositories.swaps.list_due_auctions(self._context.now()))

        closures: list[AuctionClosure] = []
        for swap_id in self._context.run(due):
            try:
                closure = self.close_if_due(swap_id)
            except SwapCoreError:
                log.exception("Could not close auction %s", swap_id)
                continue
            if closure is not None:
                closures.append(closure)
        log.info("Auction sweep closed %d auctions", len(closures))
        return closures

    def _close(
        self, uow: SwapUnitOfWork, swap: Swap, now: datetime, outbox: Outbox
    ) -> AuctionClosure:
        repositories = uow.repositories
        pending = repositories.proposals.list_for_swap(swap.id, status=ProposalStatus.PENDING)
        rejected: list[UUID] = []
        winner: Proposal | None = None
        for candidate in rank(pending, self._context.config.auction_ranking):
            if candidate.type is PaymentType.BOOKING:
                offered = (
                    repositories.swaps.get(candidate.target_swap_id)
                    if candidate.target_swap_id is not None
                    else None
                )
                if offered is None or not offered.is_open:
                    candidate.reject(actor_id=None, reason=REASON_OFFER_UNAVAILABLE, now=now)
                    rejected.append(candidate.id)
                    continue
            winner = candidate
            break

        if winner is None:
            swap.expire(now)
        else:
            closed = self._accept(
                uow,
                swap,
                winner,
                actor_id=None,
                reason=REASON_AUCTION_CLOSED,
                now=now,
                outbox=outbox,
            )
            rejected.extend(proposal.id for proposal in closed)
        outbox.add(
            NotificationKind.AUCTION_CLOSED,
            swap.id,
            swap.owner_id,
            status=swap.status,
            winner_id=winner.id if winner is not None else "",
        )
        return AuctionClosure(
            swap_id=swap.id,
            status=swap.status,
            winner_id=winner.id if winner is not None else None,
            rejected_ids=tuple(rejected),
            closed_now=True,
        )

    @staticmethod
    def _closure_of(uow: SwapUnitOfWork, swap: Swap) -> AuctionClosure:
        proposals = uow.repositories.proposals
        accepted = proposals.list_for_swap(swap.id, status=ProposalStatus.ACCEPTED)
        rejected = proposals.list_for_swap(swap.id, status=ProposalStatus.REJECTED)
        return AuctionClosure(
            swap_id=swap.id,
            status=swap.status,
            winner_id=accepted[0].id if accepted else None,
            rejected_ids=tuple(proposal.id for proposal in rejected),
        )

    # Reads ---------------------------------------------------------------------

    def rank_proposals(self, swap_id: UUID) -> list[Proposal]:
        """Pending proposals of ``swap_id``, best first."""

        self.close_if_due(swap_id)

        def operation(uow: SwapUnitOfWork, _outbox: Outbox) -> list[Proposal]:
            _require_swap(uow, swap_id)
            pending = uow.repositories.proposals.list_for_swap(
                swap_id, status=ProposalStatus.PENDING
            )
            return rank(pending, self._context.config.auction_ranking)

        return self._context.run(operation)

    def get_auction_status(self, swap_id: UUID) -> AuctionStatus:
        self.close_if_due(swap_id)

        def operation(uow: SwapUnitOfWork, _outbox: Outbox) -> AuctionStatus:
            swap = _require_swap(uow, swap_id)
            if not swap.is_auction or swap.auction_end_at is None:
                raise ValidationError(f"Swap {swap.id} is not an auction")
            if not swap.is_open:
                return AuctionStatus.closed()
            return evaluate(self._context.now(), swap.auction_end_at)

        return self._context.run(operation)


__all__ = ["AuctionClosure", "ProposalResolver"]
