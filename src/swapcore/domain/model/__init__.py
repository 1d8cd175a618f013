"""Public domain model surface."""

from __future__ import annotations

from swapcore.domain.model.entity import Entity, new_id, utcnow
from swapcore.domain.model.enums import (
    AcceptanceStrategy,
    AuctionRanking,
    EdgeStatus,
    GatewayEventKind,
    PaymentType,
    ProposalStatus,
    SettlementStatus,
    SwapStatus,
    TargetingEventKind,
)
from swapcore.domain.model.paging import Page, PageRequest
from swapcore.domain.model.proposal import (
    PROPOSAL_TRANSITIONS,
    REASON_ANOTHER_ACCEPTED,
    REASON_AUCTION_CLOSED,
    REASON_MATCHED_ELSEWHERE,
    REASON_OFFER_UNAVAILABLE,
    REASON_SWAP_CANCELLED,
    REASON_SWAP_MATCHED,
    REASON_TARGET_WITHDRAWN,
    Proposal,
    ProposalPayload,
)
from swapcore.domain.model.settlement import (
    SETTLEMENT_TRANSITIONS,
    EscrowAccount,
    GatewayEvent,
    PaymentTransaction,
)
from swapcore.domain.model.swap import SWAP_TRANSITIONS, Swap
from swapcore.domain.model.targeting import TargetEdge, TargetingEvent

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "new_id",
    "utcnow",
    # aggregates
    "Swap",
    "TargetEdge",
    "TargetingEvent",
    "Proposal",
    "ProposalPayload",
    "PaymentTransaction",
    "EscrowAccount",
    "GatewayEvent",
    # paging
    "Page",
    "PageRequest",
    # transitions
    "SWAP_TRANSITIONS",
    "PROPOSAL_TRANSITIONS",
    "SETTLEMENT_TRANSITIONS",
    # rejection reasons
    "REASON_ANOTHER_ACCEPTED",
    "REASON_AUCTION_CLOSED",
    "REASON_MATCHED_ELSEWHERE",
    "REASON_OFFER_UNAVAILABLE",
    "REASON_SWAP_CANCELLED",
    "REASON_SWAP_MATCHED",
    "REASON_TARGET_WITHDRAWN",
    # enums
    "AcceptanceStrategy",
    "AuctionRanking",
    "EdgeStatus",
    "GatewayEventKind",
    "PaymentType",
    "ProposalStatus",
    "SettlementStatus",
    "SwapStatus",
    "TargetingEventKind",
]
