"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class AcceptanceStrategy(StrEnum):
    FIRST_MATCH = "first_match"
    AUCTION = "auction"


class SwapStatus(StrEnum):
    OPEN = "open"
    MATCHED = "matched"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not SwapStatus.OPEN


class PaymentType(StrEnum):
    BOOKING = "booking"
    CASH = "cash"


class EdgeStatus(StrEnum):
    ACTIVE = "active"
    SUPERSEDED = "superseded"
    REMOVED = "removed"


class TargetingEventKind(StrEnum):
    TARGETED = "targeted"
    RETARGETED = "retargeted"
    REMOVED = "removed"


class ProposalStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class SettlementStatus(StrEnum):
    PENDING = "pending"
    FUNDED = "funded"
    RELEASED = "released"
    REFUNDED = "refunded"

    @property
    def is_terminal(self) -> bool:
        return self in {SettlementStatus.RELEASED, SettlementStatus.REFUNDED}


class GatewayEventKind(StrEnum):
    """Callbacks emitted by the payment/escrow gateway."""

    FUNDED = "funded"
    RELEASED = "released"
    REFUNDED = "refunded"


class AuctionRanking(StrEnum):
    """Cross-type ordering applied when an auction accepts both cash and booking proposals."""

    CASH_FIRST = "cash_first"
    BOOKING_FIRST = "booking_first"
