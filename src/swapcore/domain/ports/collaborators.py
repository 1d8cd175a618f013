"""Ports for external collaborators the core calls into."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class BookingSummary:
    """Read-only booking metadata used for eligibility checks."""

    id: UUID
    owner_id: UUID
    available: bool = True
    title: str | None = None


@runtime_checkable
class BookingLookup(Protocol):
    def get_booking(self, booking_id: UUID) -> BookingSummary | None: ...


@runtime_checkable
class LedgerRecorder(Protocol):
    """External ledger returning an opaque transaction identifier."""

    def record(self, kind: str, subject_id: UUID, attributes: Mapping[str, str]) -> str: ...


class NotificationKind(StrEnum):
    TARGETED = "targeted"
    RETARGETED = "retargeted"
    TARGET_REMOVED = "target_removed"
    PROPOSAL_CREATED = "proposal_created"
    PROPOSAL_ACCEPTED = "proposal_accepted"
    PROPOSAL_REJECTED = "proposal_rejected"
    AUCTION_CLOSED = "auction_closed"
    SWAP_CANCELLED = "swap_cancelled"
    SETTLEMENT_UPDATED = "settlement_updated"


@dataclass(frozen=True, slots=True)
class Notification:
    kind: NotificationKind
    subject_id: UUID
    recipients: tuple[UUID, ...] = ()
    attributes: Mapping[str, str] = field(default_factory=dict)


@runtime_checkable
class NotificationDispatcher(Protocol):
    """Fire-and-forget delivery of state-transition notifications."""

    def dispatch(self, notification: Notification) -> None: ...
