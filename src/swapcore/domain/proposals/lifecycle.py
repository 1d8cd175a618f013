"""Transitions shared by manual acceptance, auction close, settlement and targeting."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from swapcore.domain.model import ProposalStatus
from swapcore.domain.notifications import NotificationKind

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from uuid import UUID

    from swapcore.domain.model import Proposal, Swap
    from swapcore.domain.notifications import Outbox
    from swapcore.domain.ports.unit_of_work import SwapRepositories

log = logging.getLogger(__name__)


def _close_all(
    candidates: Iterable[tuple[Proposal, str]],
    *,
    actor_id: UUID | None,
    now: datetime,
    outbox: Outbox,
    keep: UUID | None,
    expire: bool,
) -> list[Proposal]:
    closed: list[Proposal] = []
    for proposal, why in candidates:
        if proposal.id == keep or not proposal.is_pending:
            continue
        if expire:
            proposal.expire(reason=why, now=now)
        else:
            proposal.reject(actor_id=actor_id, reason=why, now=now)
        outbox.add(
            NotificationKind.PROPOSAL_REJECTED,
            proposal.id,
            proposal.proposer_id,
            status=proposal.status,
            reason=why,
        )
        closed.append(proposal)
    return closed


def retire_pending(
    repositories: SwapRepositories,
    swap: Swap,
    *,
    reason: str,
    offer_reason: str,
    actor_id: UUID | None,
    now: datetime,
    outbox: Outbox,
    keep: UUID | None = None,
    expire: bool = False,
) -> list[Proposal]:
    """Close every pending proposal made to ``swap`` or offering it.

    Proposals made to the swap get ``reason``; proposals elsewhere that offer the
    swap in exchange get ``offer_reason``. ``expire`` selects ``expired`` over
    ``rejected``.
    """

    proposals = repositories.proposals
    received = proposals.list_for_swap(swap.id, status=ProposalStatus.PENDING)
    offering = proposals.list_offering(swap.id, status=ProposalStatus.PENDING)
    closed = _close_all(
        [(p, reason) for p in received] + [(p, offer_reason) for p in offering],
        actor_id=actor_id,
        now=now,
        outbox=outbox,
        keep=keep,
        expire=expire,
    )
    if closed:
        log.debug("Closed %d pending proposals around swap %s", len(closed), swap.id)
    return closed


def retire_offers_between(
    repositories: SwapRepositories,
    *,
    offered_swap_id: UUID,
    receiving_swap_id: UUID,
    reason: str,
    now: datetime,
    outbox: Outbox,
) -> list[Proposal]:
    """Expire pending proposals to ``receiving_swap_id`` that offer ``offered_swap_id``.

    A booking offer travels with the target edge between the two swaps; once the
    edge is superseded or removed the offer can no longer be accepted.
    """

    offering = repositories.proposals.list_offering(
        offered_swap_id, status=ProposalStatus.PENDING
    )
    closed = _close_all(
        [(p, reason) for p in offering if p.source_swap_id == receiving_swap_id],
        actor_id=None,
        now=now,
        outbox=outbox,
        keep=None,
        expire=True,
    )
    if closed:
        log.info(
            "Expired %d offers of swap %s to swap %s",
            len(closed),
            offered_swap_id,
            receiving_swap_id,
        )
    return closed


__all__ = ["retire_offers_between", "retire_pending"]
