"""Proposals competing for a swap."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from swapcore.domain.errors import ConflictError
from swapcore.domain.model.entity import Entity
from swapcore.domain.model.enums import PaymentType, ProposalStatus

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID

PROPOSAL_TRANSITIONS: Final[dict[ProposalStatus, frozenset[ProposalStatus]]] = {
    ProposalStatus.PENDING: frozenset(
        {ProposalStatus.ACCEPTED, ProposalStatus.REJECTED, ProposalStatus.EXPIRED}
    ),
    ProposalStatus.ACCEPTED: frozenset(),
    ProposalStatus.REJECTED: frozenset(),
    ProposalStatus.EXPIRED: frozenset(),
}

REASON_ANOTHER_ACCEPTED: Final[str] = "another proposal was accepted"
REASON_AUCTION_CLOSED: Final[str] = "auction closed"
REASON_SWAP_CANCELLED: Final[str] = "swap cancelled"
REASON_MATCHED_ELSEWHERE: Final[str] = "offered swap was matched elsewhere"
REASON_OFFER_UNAVAILABLE: Final[str] = "offered swap is no longer available"
REASON_SWAP_MATCHED: Final[str] = "swap was matched through another proposal"
REASON_TARGET_WITHDRAWN: Final[str] = "offered swap no longer targets this swap"


@dataclass(frozen=True, slots=True, kw_only=True)
class ProposalPayload:
    """Type-specific proposal details supplied by the proposer."""

    cash_amount: Decimal | None = None
    offered_swap_id: UUID | None = None
    booking_id: UUID | None = None
    message: str | None = None


@dataclass(eq=False, kw_only=True)
class Proposal(Entity):
    """An offer made against ``source_swap_id``.

    ``target_swap_id`` is the proposer's own swap when one is offered in exchange.
    """

    source_swap_id: UUID
    proposer_id: UUID
    target_owner_id: UUID
    type: PaymentType
    target_swap_id: UUID | None = None
    cash_amount: Decimal | None = None
    currency: str = "USD"
    booking_id: UUID | None = None
    message: str | None = None
    status: ProposalStatus = ProposalStatus.PENDING
    responded_at: datetime | None = None
    responded_by: UUID | None = None
    rejection_reason: str | None = None
    ledger_reference: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is ProposalStatus.PENDING

    def accept(self, *, actor_id: UUID | None, now: datetime) -> None:
        self._respond(ProposalStatus.ACCEPTED, actor_id=actor_id, now=now)

    def reject(self, *, actor_id: UUID | None, reason: str, now: datetime) -> None:
        self._respond(ProposalStatus.REJECTED, actor_id=actor_id, now=now)
        self.rejection_reason = reason

    def expire(self, *, reason: str, now: datetime) -> None:
        self._respond(ProposalStatus.EXPIRED, actor_id=None, now=now)
        self.rejection_reason = reason

    def _respond(self, target: ProposalStatus, *, actor_id: UUID | None, now: datetime) -> None:
        if target not in PROPOSAL_TRANSITIONS[self.status]:
            raise ConflictError(f"Proposal {self.id} was already {self.status}")
        self.status = target
        self.responded_at = now
        self.responded_by = actor_id
