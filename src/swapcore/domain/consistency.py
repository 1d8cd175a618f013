"""Offline audit and repair of the targeting and proposal invariants."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from swapcore.domain.model import (
    REASON_ANOTHER_ACCEPTED,
    REASON_AUCTION_CLOSED,
    REASON_SWAP_CANCELLED,
    PaymentType,
    ProposalStatus,
    SwapStatus,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime
    from uuid import UUID

    from swapcore.domain.context import CoreContext
    from swapcore.domain.model import PaymentTransaction, Proposal, Swap, TargetEdge
    from swapcore.domain.notifications import Outbox
    from swapcore.domain.ports.unit_of_work import SwapUnitOfWork

log = logging.getLogger(__name__)


class IssueKind(StrEnum):
    DUPLICATE_ACTIVE_EDGE = "duplicate_active_edge"
    CYCLE = "cycle"
    MULTIPLE_ACCEPTED = "multiple_accepted"
    MATCHED_WITHOUT_ACCEPTANCE = "matched_without_acceptance"
    SETTLEMENT_MISMATCH = "settlement_mismatch"
    PENDING_ON_TERMINAL_SWAP = "pending_on_terminal_swap"
    AUCTION_WITHOUT_END = "auction_without_end"


REPAIRABLE: frozenset[IssueKind] = frozenset(
    {IssueKind.DUPLICATE_ACTIVE_EDGE, IssueKind.CYCLE, IssueKind.PENDING_ON_TERMINAL_SWAP}
)

_EXPIRY_REASON: dict[SwapStatus, str] = {
    SwapStatus.MATCHED: REASON_ANOTHER_ACCEPTED,
    SwapStatus.CANCELLED: REASON_SWAP_CANCELLED,
    SwapStatus.EXPIRED: REASON_AUCTION_CLOSED,
}


@dataclass(frozen=True, slots=True)
class ConsistencyIssue:
    kind: IssueKind
    subject_id: UUID
    detail: str

    @property
    def repairable(self) -> bool:
        return self.kind in REPAIRABLE


@dataclass(frozen=True, slots=True)
class ConsistencyReport:
    issues: tuple[ConsistencyIssue, ...] = ()
    repaired: int = 0

    @property
    def ok(self) -> bool:
        return not self.issues

    def of_kind(self, kind: IssueKind) -> list[ConsistencyIssue]:
        return [issue for issue in self.issues if issue.kind is kind]


def _newest_first(edges: Iterable[TargetEdge]) -> list[TargetEdge]:
    return sorted(edges, key=lambda edge: (edge.created_at, str(edge.id)), reverse=True)


def _active_by_source(edges: Iterable[TargetEdge]) -> dict[UUID, list[TargetEdge]]:
    grouped: dict[UUID, list[TargetEdge]] = defaultdict(list)
    for edge in edges:
        grouped[edge.source_swap_id].append(edge)
    return {source: _newest_first(group) for source, group in grouped.items()}


def find_cycles(edges: Iterable[TargetEdge]) -> list[list[TargetEdge]]:
    """Cycles formed by the newest active edge of every source."""

    successor = {source: group[0] for source, group in _active_by_source(edges).items()}
    state: dict[UUID, int] = {}  # 1 on the current path, 2 finished
    cycles: list[list[TargetEdge]] = []
    for start in successor:
        path: list[UUID] = []
        node: UUID | None = start
        while node is not None and node in successor and state.get(node) is None:
            state[node] = 1
            path.append(node)
            node = successor[node].target_swap_id
        if node is not None and state.get(node) == 1:
            loop = path[path.index(node) :]
            cycles.append([successor[member] for member in loop])
        for member in path:
            state[member] = 2
    return cycles


def audit_state(
    swaps: Sequence[Swap],
    edges: Sequence[TargetEdge],
    proposals: Sequence[Proposal],
    transactions: Sequence[PaymentTransaction],
) -> list[ConsistencyIssue]:
    issues: list[ConsistencyIssue] = []

    for source, group in _active_by_source(edges).items():
        if len(group) > 1:
            issues.append(
                ConsistencyIssue(
                    IssueKind.DUPLICATE_ACTIVE_EDGE,
                    source,
                    f"{len(group)} active edges leave swap {source}",
                )
            )
    for cycle in find_cycles(edges):
        members = " -> ".join(str(edge.source_swap_id) for edge in cycle)
        issues.append(ConsistencyIssue(IssueKind.CYCLE, cycle[0].source_swap_id, members))

    accepted = [proposal for proposal in proposals if proposal.status is ProposalStatus.ACCEPTED]
    for swap_id, count in Counter(p.source_swap_id for p in accepted).items():
        if count > 1:
            issues.append(
                ConsistencyIssue(
                    IssueKind.MULTIPLE_ACCEPTED, swap_id, f"{count} accepted proposals"
                )
            )

    matched_by = {p.source_swap_id for p in accepted} | {
        p.target_swap_id for p in accepted if p.target_swap_id is not None
    }
    terminal = {swap.id: swap.status for swap in swaps if swap.status.is_terminal}
    for swap in swaps:
        if swap.status is SwapStatus.MATCHED and swap.id not in matched_by:
            issues.append(
                ConsistencyIssue(
                    IssueKind.MATCHED_WITHOUT_ACCEPTANCE, swap.id, "matched without a winner"
                )
            )
        if swap.is_auction and swap.auction_end_at is None:
            issues.append(
                ConsistencyIssue(IssueKind.AUCTION_WITHOUT_END, swap.id, "auction has no end time")
            )

    payments = Counter(transaction.proposal_id for transaction in transactions)
    for proposal in accepted:
        if proposal.type is PaymentType.CASH and payments[proposal.id] != 1:
            issues.append(
                ConsistencyIssue(
                    IssueKind.SETTLEMENT_MISMATCH,
                    proposal.id,
                    f"{payments[proposal.id]} payment records for accepted cash proposal",
                )
            )

    for proposal in proposals:
        if proposal.is_pending and proposal.source_swap_id in terminal:
            issues.append(
                ConsistencyIssue(
                    IssueKind.PENDING_ON_TERMINAL_SWAP,
                    proposal.id,
                    f"pending on {terminal[proposal.source_swap_id]} swap "
                    f"{proposal.source_swap_id}",
                )
            )
    return issues


class ConsistencyValidator:
    def __init__(self, context: CoreContext) -> None:
        self._context = context

    def audit(self) -> ConsistencyReport:
        report = self._context.run(lambda uow, _outbox: ConsistencyReport(_audit(uow)))
        for issue in report.issues:
            log.warning("%s on %s: %s", issue.kind, issue.subject_id, issue.detail)
        return report

    def repair(self) -> ConsistencyReport:
        """Fix duplicate edges, cycles and stale pending proposals, then re-audit."""

        def operation(uow: SwapUnitOfWork, _outbox: Outbox) -> int:
            return _repair(uow, self._context.now())

        repaired = self._context.run(operation)
        report = self.audit()
        return ConsistencyReport(report.issues, repaired=repaired)


def _audit(uow: SwapUnitOfWork) -> tuple[ConsistencyIssue, ...]:
    repositories = uow.repositories
    return tuple(
        audit_state(
            repositories.swaps.list_all(),
            repositories.edges.list_active(),
            repositories.proposals.list_all(),
            repositories.settlements.list_transactions(),
        )
    )


def _repair(uow: SwapUnitOfWork, now: datetime) -> int:
    repositories = uow.repositories
    repaired = 0
    touched: set[UUID] = set()

    for source, group in _active_by_source(repositories.edges.list_active()).items():
        for stale in group[1:]:
            log.warning("Superseding duplicate edge %s from swap %s", stale.id, source)
            stale.supersede(now)
            touched.add(source)
            repaired += 1
    uow.flush()

    for cycle in find_cycles(repositories.edges.list_active()):
        newest = _newest_first(cycle)[0]
        log.warning("Removing edge %s to break a targeting cycle", newest.id)
        newest.remove(now)
        touched.add(newest.source_swap_id)
        repaired += 1

    statuses = {swap.id: swap.status for swap in repositories.swaps.list_all()}
    for proposal in repositories.proposals.list_all():
        status = statuses.get(proposal.source_swap_id)
        if proposal.is_pending and status is not None and status.is_terminal:
            log.warning("Expiring proposal %s left pending on %s swap", proposal.id, status)
            proposal.expire(reason=_EXPIRY_REASON[status], now=now)
            repaired += 1

    for swap_id in touched:
        swap = repositories.swaps.get(swap_id)
        if swap is not None:
            swap.bump_version(now)
    return repaired


__all__ = [
    "ConsistencyIssue",
    "ConsistencyReport",
    "ConsistencyValidator",
    "IssueKind",
    "audit_state",
    "find_cycles",
]
