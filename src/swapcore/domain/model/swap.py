"""Swap listings: the aggregate every targeting and proposal operation hangs off."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from swapcore.domain.errors import ConflictError, ValidationError
from swapcore.domain.model.entity import Entity
from swapcore.domain.model.enums import AcceptanceStrategy, PaymentType, SwapStatus

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID

SWAP_TRANSITIONS: Final[dict[SwapStatus, frozenset[SwapStatus]]] = {
    SwapStatus.OPEN: frozenset({SwapStatus.MATCHED, SwapStatus.CANCELLED, SwapStatus.EXPIRED}),
    SwapStatus.MATCHED: frozenset(),
    SwapStatus.CANCELLED: frozenset(),
    SwapStatus.EXPIRED: frozenset(),
}


@dataclass(eq=False, kw_only=True)
class Swap(Entity):
    """An exchange listing owned by one user.

    ``version`` increases on every mutation of the swap or of anything hanging off it
    (edges, proposals). Persistence adapters compare it on write to reject stale updates.
    """

    owner_id: UUID
    acceptance_strategy: AcceptanceStrategy = AcceptanceStrategy.FIRST_MATCH
    payment_types: frozenset[PaymentType] = field(
        default_factory=lambda: frozenset({PaymentType.BOOKING})
    )
    auction_end_at: datetime | None = None
    min_cash_amount: Decimal | None = None
    max_cash_amount: Decimal | None = None
    currency: str = "USD"
    booking_id: UUID | None = None
    status: SwapStatus = SwapStatus.OPEN
    version: int = 1
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.payment_types:
            raise ValidationError("Swap must accept at least one payment type")
        if self.is_auction and self.auction_end_at is None:
            raise ValidationError("Auction swaps require an auction end time")
        if not self.is_auction and self.auction_end_at is not None:
            raise ValidationError("Only auction swaps may carry an auction end time")
        if self.auction_end_at is not None and self.auction_end_at.tzinfo is None:
            raise ValidationError("Auction end time must include timezone information")
        for bound in (self.min_cash_amount, self.max_cash_amount):
            if bound is not None and bound < 0:
                raise ValidationError("Cash bounds must be non-negative")
        if (
            self.min_cash_amount is not None
            and self.max_cash_amount is not None
            and self.min_cash_amount > self.max_cash_amount
        ):
            raise ValidationError("Minimum cash amount exceeds maximum cash amount")
        if len(self.currency) != 3 or not self.currency.isalpha():
            raise ValidationError(f"Invalid currency code: {self.currency!r}")
        self.currency = self.currency.upper()

    @property
    def is_auction(self) -> bool:
        return self.acceptance_strategy is AcceptanceStrategy.AUCTION

    @property
    def is_open(self) -> bool:
        return self.status is SwapStatus.OPEN

    def accepts(self, payment_type: PaymentType) -> bool:
        return payment_type in self.payment_types

    def bump_version(self, now: datetime) -> None:
        """Record a mutation so concurrent writers holding the old version fail."""
        self.version += 1
        self.updated_at = now

    def mark_matched(self, now: datetime) -> None:
        self._transition(SwapStatus.MATCHED, now)

    def cancel(self, now: datetime) -> None:
        self._transition(SwapStatus.CANCELLED, now)

    def expire(self, now: datetime) -> None:
        self._transition(SwapStatus.EXPIRED, now)

    def _transition(self, target: SwapStatus, now: datetime) -> None:
        if target not in SWAP_TRANSITIONS[self.status]:
            raise ConflictError(f"Swap {self.id} cannot move from {self.status} to {target}")
        self.status = target
        self.bump_version(now)
