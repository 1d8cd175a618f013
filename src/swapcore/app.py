"""Application facade wiring the swap core to its adapters."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from swapcore.adapters.gateway import translate_callback
from swapcore.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemySwapUnitOfWork,
    is_started,
    startup,
)
from swapcore.config.resolution import get_resolution_config
from swapcore.domain.auction_clock import system_clock
from swapcore.domain.consistency import ConsistencyValidator
from swapcore.domain.context import CoreContext
from swapcore.domain.ports.unit_of_work import SwapUnitOfWork
from swapcore.domain.proposals.resolver import ProposalResolver
from swapcore.domain.settlement import SettlementCoordinator
from swapcore.domain.swaps import SwapService
from swapcore.domain.targeting.coordinator import TargetingCoordinator

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from swapcore.config.resolution import ResolutionConfig
    from swapcore.domain.auction_clock import AuctionStatus, Clock
    from swapcore.domain.consistency import ConsistencyReport
    from swapcore.domain.model import (
        GatewayEvent,
        Page,
        PageRequest,
        PaymentTransaction,
        PaymentType,
        Proposal,
        ProposalPayload,
        Swap,
        TargetEdge,
        TargetingEvent,
    )
    from swapcore.domain.ports.collaborators import (
        BookingLookup,
        LedgerRecorder,
        NotificationDispatcher,
    )
    from swapcore.domain.proposals.resolver import AuctionClosure
    from swapcore.domain.settlement import Settlement
    from swapcore.domain.swaps import SwapDraft
    from swapcore.domain.targeting.validation import TargetingValidation

UnitOfWorkFactory = Callable[[], SwapUnitOfWork]

log = getLogger(__name__)


class SwapCore:
    """Caller-facing operations; each call runs in its own unit of work."""

    def __init__(self, context: CoreContext) -> None:
        self.context = context
        self.swaps = SwapService(context)
        self.targeting = TargetingCoordinator(context)
        self.proposals = ProposalResolver(context)
        self.settlements = SettlementCoordinator(context)
        self.consistency = ConsistencyValidator(context)

    # Swaps
    def create_swap(self, draft: SwapDraft) -> Swap:
        return self.swaps.create_swap(draft)

    def get_swap(self, swap_id: UUID) -> Swap:
        return self.swaps.get_swap(swap_id)

    def cancel_swap(self, swap_id: UUID, user_id: UUID) -> Swap:
        return self.swaps.cancel_swap(swap_id, user_id)

    # Targeting
    def target_swap(self, source_id: UUID, target_id: UUID, user_id: UUID) -> TargetEdge:
        return self.targeting.target_swap(source_id, target_id, user_id)

    def retarget_swap(self, source_id: UUID, new_target_id: UUID, user_id: UUID) -> TargetEdge:
        return self.targeting.retarget_swap(source_id, new_target_id, user_id)

    def remove_target(self, source_id: UUID, user_id: UUID) -> None:
        self.targeting.remove_target(source_id, user_id)

    def check_targeting(
        self, source_id: UUID, target_id: UUID, user_id: UUID
    ) -> TargetingValidation:
        return self.targeting.check_targeting(source_id, target_id, user_id)

    def list_targeting_history(
        self, swap_id: UUID, page: int | PageRequest = 1
    ) -> Page[TargetingEvent]:
        return self.targeting.list_targeting_history(swap_id, page)

    # Proposals
    def create_proposal(
        self,
        source_swap_id: UUID,
        proposer_id: UUID,
        payment_type: PaymentType,
        payload: ProposalPayload,
    ) -> Proposal:
        return self.proposals.create_proposal(source_swap_id, proposer_id, payment_type, payload)

    def accept_proposal(self, proposal_id: UUID, user_id: UUID) -> Proposal:
        return self.proposals.accept_proposal(proposal_id, user_id)

    def reject_proposal(self, proposal_id: UUID, user_id: UUID, reason: str) -> Proposal:
        return self.proposals.reject_proposal(proposal_id, user_id, reason)

    def get_auction_status(self, swap_id: UUID) -> AuctionStatus:
        return self.proposals.get_auction_status(swap_id)

    def close_expired_auctions(self) -> list[AuctionClosure]:
        return self.proposals.close_expired_auctions()

    # Settlement
    def apply_gateway_event(self, event: GatewayEvent) -> PaymentTransaction:
        return self.settlements.apply_gateway_event(event)

    def handle_gateway_callback(
        self, payload: Mapping[str, object] | str | bytes
    ) -> PaymentTransaction:
        return self.settlements.apply_gateway_event(translate_callback(payload))

    def get_settlement(self, proposal_id: UUID) -> Settlement | None:
        return self.settlements.get_settlement(proposal_id)

    # Diagnostics
    def audit(self, *, repair: bool = False) -> ConsistencyReport:
        if repair:
            return self.consistency.repair()
        return self.consistency.audit()


def build_swap_core(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ResolutionConfig | None = None,
    clock: Clock | None = None,
    notifier: NotificationDispatcher | None = None,
    ledger: LedgerRecorder | None = None,
    bookings: BookingLookup | None = None,
) -> SwapCore:
    """Assemble a ``SwapCore`` backed by the SQLAlchemy adapter unless told otherwise."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemySwapUnitOfWork
    context = CoreContext(
        uow_factory=unit_of_work_factory,
        clock=clock or system_clock,
        config=config or get_resolution_config(),
        notifier=notifier,
        ledger=ledger,
        bookings=bookings,
    )
    log.debug("Swap core ready (ranking=%s)", context.config.auction_ranking)
    return SwapCore(context)
