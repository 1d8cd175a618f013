"""Pure eligibility checks for a new proposal."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from swapcore.domain.errors import AuthorizationError, SwapCoreError, ValidationError
from swapcore.domain.model import PaymentType

if TYPE_CHECKING:
    from uuid import UUID

    from swapcore.domain.model import ProposalPayload, Swap
    from swapcore.domain.ports.collaborators import BookingSummary


class ProposalIssueKind(StrEnum):
    OWN_SWAP = "own_swap"
    TYPE_NOT_ACCEPTED = "type_not_accepted"
    AMOUNT_MISSING = "amount_missing"
    AMOUNT_NOT_POSITIVE = "amount_not_positive"
    AMOUNT_OUT_OF_RANGE = "amount_out_of_range"
    UNEXPECTED_OFFER = "unexpected_offer"
    OFFER_MISSING = "offer_missing"
    OFFER_INVALID = "offer_invalid"
    BOOKING_INVALID = "booking_invalid"


@dataclass(frozen=True, slots=True)
class ProposalIssue:
    kind: ProposalIssueKind
    message: str

    def to_error(self) -> SwapCoreError:
        if self.kind is ProposalIssueKind.OWN_SWAP:
            return AuthorizationError(self.message)
        return ValidationError(self.message)


@dataclass(frozen=True, slots=True)
class ProposalValidation:
    issues: tuple[ProposalIssue, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def raise_first(self) -> None:
        if self.issues:
            raise self.issues[0].to_error()


def validate_proposal(
    swap: Swap,
    proposer_id: UUID,
    payment_type: PaymentType,
    payload: ProposalPayload,
    *,
    offered_swap: Swap | None = None,
    booking: BookingSummary | None = None,
    booking_checked: bool = False,
) -> ProposalValidation:
    """Check a proposal against the receiving swap and, for booking offers, the offered swap.

    ``booking_checked`` tells whether a booking lookup ran; when it did, a missing
    ``booking`` means the referenced booking does not exist.
    """

    issues: list[ProposalIssue] = []

    def flag(kind: ProposalIssueKind, message: str) -> None:
        issues.append(ProposalIssue(kind, message))

    if swap.owner_id == proposer_id:
        flag(ProposalIssueKind.OWN_SWAP, "Users cannot propose to their own swap")
    if not swap.accepts(payment_type):
        flag(
            ProposalIssueKind.TYPE_NOT_ACCEPTED,
            f"Swap {swap.id} does not accept {payment_type} proposals",
        )

    if payment_type is PaymentType.CASH:
        amount = payload.cash_amount
        if payload.offered_swap_id is not None:
            flag(ProposalIssueKind.UNEXPECTED_OFFER, "Cash proposals cannot offer a swap")
        if amount is None:
            flag(ProposalIssueKind.AMOUNT_MISSING, "Cash proposals require an amount")
        elif amount <= 0:
            flag(ProposalIssueKind.AMOUNT_NOT_POSITIVE, "Cash amount must be positive")
        elif (swap.min_cash_amount is not None and amount < swap.min_cash_amount) or (
            swap.max_cash_amount is not None and amount > swap.max_cash_amount
        ):
            flag(
                ProposalIssueKind.AMOUNT_OUT_OF_RANGE,
                f"Cash amount {amount} is outside {swap.min_cash_amount}..{swap.max_cash_amount}",
            )
        return ProposalValidation(tuple(issues))

    if payload.offered_swap_id is None:
        flag(ProposalIssueKind.OFFER_MISSING, "Booking proposals must offer one of your swaps")
    elif offered_swap is None:
        flag(ProposalIssueKind.OFFER_INVALID, f"Swap {payload.offered_swap_id} does not exist")
    elif offered_swap.id == swap.id:
        flag(ProposalIssueKind.OFFER_INVALID, "A swap cannot be offered to itself")
    elif offered_swap.owner_id != proposer_id:
        flag(ProposalIssueKind.OFFER_INVALID, "Offered swap belongs to another user")
    elif not offered_swap.is_open:
        flag(ProposalIssueKind.OFFER_INVALID, f"Offered swap is {offered_swap.status}")

    if booking_checked:
        if booking is None:
            flag(ProposalIssueKind.BOOKING_INVALID, "Offered booking does not exist")
        elif booking.owner_id != proposer_id:
            flag(ProposalIssueKind.BOOKING_INVALID, "Offered booking belongs to another user")
        elif not booking.available:
            flag(ProposalIssueKind.BOOKING_INVALID, "Offered booking is no longer available")
    return ProposalValidation(tuple(issues))


__all__ = ["ProposalIssue", "ProposalIssueKind", "ProposalValidation", "validate_proposal"]
