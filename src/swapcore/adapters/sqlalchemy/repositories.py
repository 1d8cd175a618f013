"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select

from swapcore.adapters.sqlalchemy.mappings import (
    escrow_account_table,
    payment_transaction_table,
    proposal_table,
    swap_table,
    target_edge_table,
    targeting_event_table,
)
from swapcore.domain.model import (
    AcceptanceStrategy,
    EdgeStatus,
    EscrowAccount,
    Page,
    PaymentTransaction,
    Proposal,
    ProposalStatus,
    Swap,
    SwapStatus,
    TargetEdge,
    TargetingEvent,
)

if TYPE_CHECKING:
    import uuid
    from collections.abc import Sequence
    from datetime import datetime

    from sqlalchemy import Select
    from sqlalchemy.orm import Session

    from swapcore.domain.model import PageRequest


class SqlAlchemySwapRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Swap) -> None:
        self.session.add(entity)

    def get(self, swap_id: uuid.UUID) -> Swap | None:
        return self.session.get(Swap, swap_id)

    def list_due_auctions(self, now: datetime) -> Sequence[uuid.UUID]:
        stmt = (
            select(swap_table.c.id)
            .where(swap_table.c.status == SwapStatus.OPEN)
            .where(swap_table.c.acceptance_strategy == AcceptanceStrategy.AUCTION)
            .where(swap_table.c.auction_end_at <= now)
            .order_by(swap_table.c.auction_end_at)
        )
        return self.session.execute(stmt).scalars().all()

    def list_all(self) -> Sequence[Swap]:
        stmt = select(Swap).order_by(swap_table.c.created_at, swap_table.c.id)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyTargetEdgeRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: TargetEdge) -> None:
        self.session.add(entity)

    def active_for_source(self, source_swap_id: uuid.UUID) -> TargetEdge | None:
        stmt = (
            select(TargetEdge)
            .where(target_edge_table.c.source_swap_id == source_swap_id)
            .where(target_edge_table.c.status == EdgeStatus.ACTIVE)
            .order_by(target_edge_table.c.created_at.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def active_for_target(self, target_swap_id: uuid.UUID) -> Sequence[TargetEdge]:
        stmt = (
            select(TargetEdge)
            .where(target_edge_table.c.target_swap_id == target_swap_id)
            .where(target_edge_table.c.status == EdgeStatus.ACTIVE)
            .order_by(target_edge_table.c.created_at, target_edge_table.c.id)
        )
        return self.session.execute(stmt).scalars().all()

    def list_active(self) -> Sequence[TargetEdge]:
        stmt = select(TargetEdge).where(target_edge_table.c.status == EdgeStatus.ACTIVE)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyTargetingEventRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: TargetingEvent) -> None:
        """Insert inside a savepoint so a failed write leaves the outer transaction intact."""

        with self.session.begin_nested():
            self.session.add(entity)

    def page_for_swap(self, swap_id: uuid.UUID, request: PageRequest) -> Page[TargetingEvent]:
        involves = or_(
            targeting_event_table.c.source_swap_id == swap_id,
            targeting_event_table.c.target_swap_id == swap_id,
            targeting_event_table.c.previous_target_swap_id == swap_id,
        )
        total = self.session.execute(
            select(func.count()).select_from(targeting_event_table).where(involves)
        ).scalar_one()
        stmt = (
            select(TargetingEvent)
            .where(involves)
            .order_by(targeting_event_table.c.created_at.desc(), targeting_event_table.c.id)
            .offset(request.offset)
            .limit(request.size)
        )
        items = tuple(self.session.execute(stmt).scalars().all())
        return Page(items=items, page=request.page, size=request.size, total=total)


class SqlAlchemyProposalRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Proposal) -> None:
        self.session.add(entity)

    def get(self, proposal_id: uuid.UUID) -> Proposal | None:
        return self.session.get(Proposal, proposal_id)

    def list_for_swap(
        self, swap_id: uuid.UUID, *, status: ProposalStatus | None = None
    ) -> Sequence[Proposal]:
        stmt = select(Proposal).where(proposal_table.c.source_swap_id == swap_id)
        return self._ordered(stmt, status)

    def list_offering(
        self, swap_id: uuid.UUID, *, status: ProposalStatus | None = None
    ) -> Sequence[Proposal]:
        stmt = select(Proposal).where(proposal_table.c.target_swap_id == swap_id)
        return self._ordered(stmt, status)

    def pending_for_proposer(
        self, swap_id: uuid.UUID, proposer_id: uuid.UUID
    ) -> Proposal | None:
        stmt = (
            select(Proposal)
            .where(proposal_table.c.source_swap_id == swap_id)
            .where(proposal_table.c.proposer_id == proposer_id)
            .where(proposal_table.c.status == ProposalStatus.PENDING)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_all(self) -> Sequence[Proposal]:
        return self._ordered(select(Proposal), None)

    def _ordered(
        self, stmt: Select[tuple[Proposal]], status: ProposalStatus | None
    ) -> Sequence[Proposal]:
        if status is not None:
            stmt = stmt.where(proposal_table.c.status == status)
        stmt = stmt.order_by(proposal_table.c.created_at, proposal_table.c.id)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemySettlementRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add_transaction(self, transaction: PaymentTransaction) -> None:
        self.session.add(transaction)

    def add_escrow(self, escrow: EscrowAccount) -> None:
        self.session.add(escrow)

    def get_transaction(self, transaction_id: uuid.UUID) -> PaymentTransaction | None:
        return self.session.get(PaymentTransaction, transaction_id)

    def transaction_for_proposal(self, proposal_id: uuid.UUID) -> PaymentTransaction | None:
        stmt = select(PaymentTransaction).where(
            payment_transaction_table.c.proposal_id == proposal_id
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def escrow_for_transaction(self, transaction_id: uuid.UUID) -> EscrowAccount | None:
        stmt = select(EscrowAccount).where(
            escrow_account_table.c.transaction_id == transaction_id
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_transactions(self) -> Sequence[PaymentTransaction]:
        stmt = select(PaymentTransaction).order_by(
            payment_transaction_table.c.created_at, payment_transaction_table.c.id
        )
        return self.session.execute(stmt).scalars().all()
