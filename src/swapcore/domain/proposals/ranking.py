"""Deterministic ordering of competing proposals."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from swapcore.domain.model import AuctionRanking, PaymentType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from swapcore.domain.model import Proposal


def _cash_key(proposal: Proposal) -> tuple[Decimal, object, str]:
    return (-(proposal.cash_amount or Decimal(0)), proposal.created_at, str(proposal.id))


def _booking_key(proposal: Proposal) -> tuple[object, str]:
    return (proposal.created_at, str(proposal.id))


def rank(
    proposals: Iterable[Proposal], policy: AuctionRanking = AuctionRanking.CASH_FIRST
) -> list[Proposal]:
    """Best proposal first.

    Cash proposals rank by amount (highest first), booking proposals by arrival
    (earliest first); ties fall back to arrival time, then id. ``policy`` decides
    which group leads when a swap accepts both.
    """

    cash: list[Proposal] = []
    booking: list[Proposal] = []
    for proposal in proposals:
        (cash if proposal.type is PaymentType.CASH else booking).append(proposal)
    cash.sort(key=_cash_key)
    booking.sort(key=_booking_key)
    if policy is AuctionRanking.BOOKING_FIRST:
        return booking + cash
    return cash + booking


__all__ = ["rank"]
