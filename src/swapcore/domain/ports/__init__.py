"""Domain port definitions for adapters."""

from __future__ import annotations

from .collaborators import (
    BookingLookup,
    BookingSummary,
    LedgerRecorder,
    Notification,
    NotificationDispatcher,
    NotificationKind,
)
from .persistence import (
    ProposalRepository,
    Repository,
    SettlementRepository,
    SwapRepository,
    TargetEdgeRepository,
    TargetingEventRepository,
)
from .unit_of_work import RepositoryCollection, SwapRepositories, SwapUnitOfWork, UnitOfWork

__all__ = [
    "BookingLookup",
    "BookingSummary",
    "LedgerRecorder",
    "Notification",
    "NotificationDispatcher",
    "NotificationKind",
    "ProposalRepository",
    "Repository",
    "RepositoryCollection",
    "SettlementRepository",
    "SwapRepositories",
    "SwapRepository",
    "SwapUnitOfWork",
    "TargetEdgeRepository",
    "TargetingEventRepository",
    "UnitOfWork",
]
