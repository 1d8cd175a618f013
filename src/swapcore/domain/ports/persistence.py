"""Ports for persisting domain aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from swapcore.domain.model import (
    EscrowAccount,
    PaymentTransaction,
    Proposal,
    ProposalStatus,
    Swap,
    TargetEdge,
    TargetingEvent,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from swapcore.domain.model import Page, PageRequest


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class SwapRepository(Repository[Swap], Protocol):
    """Persistence contract for swaps."""

    def get(self, swap_id: UUID) -> Swap | None: ...

    def list_due_auctions(self, now: datetime) -> Sequence[UUID]:
        """Ids of open auction swaps whose window ended at or before ``now``."""
        ...

    def list_all(self) -> Sequence[Swap]: ...


@runtime_checkable
class TargetEdgeRepository(Repository[TargetEdge], Protocol):
    """Persistence contract for targeting edges."""

    def active_for_source(self, source_swap_id: UUID) -> TargetEdge | None: ...

    def active_for_target(self, target_swap_id: UUID) -> Sequence[TargetEdge]: ...

    def list_active(self) -> Sequence[TargetEdge]: ...


@runtime_checkable
class TargetingEventRepository(Repository[TargetingEvent], Protocol):
    """Append-only targeting history."""

    def page_for_swap(self, swap_id: UUID, request: PageRequest) -> Page[TargetingEvent]:
        """Events naming ``swap_id`` as source, target or previous target, newest first."""
        ...


@runtime_checkable
class ProposalRepository(Repository[Proposal], Protocol):
    """Persistence contract for proposals."""

    def get(self, proposal_id: UUID) -> Proposal | None: ...

    def list_for_swap(
        self, swap_id: UUID, *, status: ProposalStatus | None = None
    ) -> Sequence[Proposal]: ...

    def list_offering(
        self, swap_id: UUID, *, status: ProposalStatus | None = None
    ) -> Sequence[Proposal]:
        """Proposals that offer ``swap_id`` in exchange for another swap."""
        ...

    def pending_for_proposer(self, swap_id: UUID, proposer_id: UUID) -> Proposal | None: ...

    def list_all(self) -> Sequence[Proposal]: ...


@runtime_checkable
class SettlementRepository(Protocol):
    """Persistence contract for payment transactions and escrow accounts."""

    def add_transaction(self, transaction: PaymentTransaction) -> None: ...

    def add_escrow(self, escrow: EscrowAccount) -> None: ...

    def get_transaction(self, transaction_id: UUID) -> PaymentTransaction | None: ...

    def transaction_for_proposal(self, proposal_id: UUID) -> PaymentTransaction | None: ...

    def escrow_for_transaction(self, transaction_id: UUID) -> EscrowAccount | None: ...

    def list_transactions(self) -> Sequence[PaymentTransaction]: ...
