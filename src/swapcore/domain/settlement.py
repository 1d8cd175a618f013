"""Payment and escrow hand-off for accepted proposals."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from swapcore.domain.errors import ConflictError, NotFoundError, SettlementError
from swapcore.domain.model import (
    REASON_MATCHED_ELSEWHERE,
    REASON_SWAP_MATCHED,
    EscrowAccount,
    PaymentTransaction,
    PaymentType,
    ProposalStatus,
    SettlementStatus,
)
from swapcore.domain.notifications import NotificationKind
from swapcore.domain.proposals.lifecycle import retire_pending

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from swapcore.domain.context import CoreContext
    from swapcore.domain.model import GatewayEvent, Proposal, Swap
    from swapcore.domain.notifications import Outbox
    from swapcore.domain.ports.unit_of_work import SwapRepositories, SwapUnitOfWork

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Settlement:
    transaction: PaymentTransaction
    escrow: EscrowAccount | None

    @property
    def status(self) -> SettlementStatus:
        return self.transaction.status


def settle_acceptance(
    repositories: SwapRepositories,
    proposal: Proposal,
    swap: Swap,
    *,
    now: datetime,
    outbox: Outbox,
) -> PaymentTransaction | None:
    """Record the consequences of ``proposal`` winning ``swap``.

    Cash proposals get a pending payment transaction and escrow account (once per
    proposal). Booking proposals match the offered swap as well; no payment record
    is created.
    """

    if proposal.status is not ProposalStatus.ACCEPTED:
        raise SettlementError(f"Proposal {proposal.id} is {proposal.status}, not accepted")

    if proposal.type is PaymentType.BOOKING:
        _match_offered_swap(repositories, proposal, now=now, outbox=outbox)
        return None

    settlements = repositories.settlements
    existing = settlements.transaction_for_proposal(proposal.id)
    if existing is not None:
        return existing
    if proposal.cash_amount is None:
        raise SettlementError(f"Cash proposal {proposal.id} has no amount")

    transaction = PaymentTransaction(
        proposal_id=proposal.id,
        payer_id=proposal.proposer_id,
        recipient_id=swap.owner_id,
        amount=proposal.cash_amount,
        currency=proposal.currency,
        created_at=now,
        updated_at=now,
    )
    escrow = EscrowAccount(
        transaction_id=transaction.id,
        proposal_id=proposal.id,
        amount=transaction.amount,
        currency=transaction.currency,
        created_at=now,
        updated_at=now,
    )
    settlements.add_transaction(transaction)
    settlements.add_escrow(escrow)
    outbox.add(
        NotificationKind.SETTLEMENT_UPDATED,
        transaction.id,
        transaction.payer_id,
        transaction.recipient_id,
        status=transaction.status,
        amount=transaction.amount,
        currency=transaction.currency,
    )
    log.info(
        "Opened %s %s payment %s for proposal %s",
        transaction.amount,
        transaction.currency,
        transaction.id,
        proposal.id,
    )
    return transaction


def _match_offered_swap(
    repositories: SwapRepositories, proposal: Proposal, *, now: datetime, outbox: Outbox
) -> None:
    if proposal.target_swap_id is None:
        raise SettlementError(f"Booking proposal {proposal.id} offers no swap")
    offered = repositories.swaps.get(proposal.target_swap_id)
    if offered is None:
        raise NotFoundError(f"Swap {proposal.target_swap_id} does not exist")
    if not offered.is_open:
        raise ConflictError(f"Offered swap {offered.id} is {offered.status}")
    offered.mark_matched(now)
    retire_pending(
        repositories,
        offered,
        reason=REASON_SWAP_MATCHED,
        offer_reason=REASON_MATCHED_ELSEWHERE,
        actor_id=None,
        now=now,
        outbox=outbox,
        keep=proposal.id,
    )


class SettlementCoordinator:
    """Apply gateway callbacks to payment and escrow records."""

    def __init__(self, context: CoreContext) -> None:
        self._context = context

    def apply_gateway_event(self, event: GatewayEvent) -> PaymentTransaction:
        def operation(uow: SwapUnitOfWork, outbox: Outbox) -> PaymentTransaction:
            now = self._context.now()
            settlements = uow.repositories.settlements
            transaction = settlements.get_transaction(event.transaction_id)
            if transaction is None:
                raise NotFoundError(f"Payment transaction {event.transaction_id} does not exist")
            target = event.target_status
            if (
                target is SettlementStatus.FUNDED
                and event.amount is not None
                and event.amount != transaction.amount
            ):
                raise SettlementError(
                    f"Funded amount {event.amount} does not match {transaction.amount}"
                )
            if (
                target is SettlementStatus.FUNDED
                and event.currency is not None
                and event.currency.upper() != transaction.currency.upper()
            ):
                raise SettlementError(
                    f"Funded currency {event.currency} does not match {transaction.currency}"
                )
            escrow = settlements.escrow_for_transaction(transaction.id)
            previous = transaction.status
            transaction.transition(target, now)
            if escrow is not None:
                escrow.transition(target, now)
            if event.gateway_reference:
                transaction.gateway_reference = event.gateway_reference
            outbox.add(
                NotificationKind.SETTLEMENT_UPDATED,
                transaction.id,
                transaction.payer_id,
                transaction.recipient_id,
                status=transaction.status,
                previous_status=previous,
            )
            return transaction

        try:
            transaction = self._context.run(operation)
        except SettlementError:
            log.warning("Rejected %s callback for transaction %s", event.kind, event.transaction_id)
            raise
        log.info("Payment %s is now %s", transaction.id, transaction.status)
        return transaction

    def get_settlement(self, proposal_id: UUID) -> Settlement | None:
        def operation(uow: SwapUnitOfWork, _outbox: Outbox) -> Settlement | None:
            settlements = uow.repositories.settlements
            transaction = settlements.transaction_for_proposal(proposal_id)
            if transaction is None:
                return None
            return Settlement(transaction, settlements.escrow_for_transaction(transaction.id))

        return self._context.run(operation)


__all__ = ["Settlement", "SettlementCoordinator", "settle_acceptance"]
