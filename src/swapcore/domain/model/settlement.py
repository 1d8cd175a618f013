"""Payment and escrow records created when a cash proposal wins."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from swapcore.domain.errors import SettlementError
from swapcore.domain.model.entity import Entity
from swapcore.domain.model.enums import GatewayEventKind, SettlementStatus

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID

SETTLEMENT_TRANSITIONS: Final[dict[SettlementStatus, frozenset[SettlementStatus]]] = {
    SettlementStatus.PENDING: frozenset({SettlementStatus.FUNDED}),
    SettlementStatus.FUNDED: frozenset({SettlementStatus.RELEASED, SettlementStatus.REFUNDED}),
    SettlementStatus.RELEASED: frozenset(),
    SettlementStatus.REFUNDED: frozenset(),
}

STATUS_FOR_EVENT: Final[dict[GatewayEventKind, SettlementStatus]] = {
    GatewayEventKind.FUNDED: SettlementStatus.FUNDED,
    GatewayEventKind.RELEASED: SettlementStatus.RELEASED,
    GatewayEventKind.REFUNDED: SettlementStatus.REFUNDED,
}


def check_settlement_transition(current: SettlementStatus, target: SettlementStatus) -> None:
    if target not in SETTLEMENT_TRANSITIONS[current]:
        raise SettlementError(f"Illegal settlement transition {current} -> {target}")


@dataclass(eq=False, kw_only=True)
class PaymentTransaction(Entity):
    proposal_id: UUID
    payer_id: UUID
    recipient_id: UUID
    amount: Decimal
    currency: str
    status: SettlementStatus = SettlementStatus.PENDING
    gateway_reference: str | None = None
    version: int = 1
    updated_at: datetime | None = None
    funded_at: datetime | None = None
    settled_at: datetime | None = None

    def transition(self, target: SettlementStatus, now: datetime) -> None:
        check_settlement_transition(self.status, target)
        self.status = target
        self.version += 1
        self.updated_at = now
        if target is SettlementStatus.FUNDED:
            self.funded_at = now
        elif target.is_terminal:
            self.settled_at = now


@dataclass(eq=False, kw_only=True)
class EscrowAccount(Entity):
    """Held funds mirroring the status of its payment transaction."""

    transaction_id: UUID
    proposal_id: UUID
    amount: Decimal
    currency: str
    status: SettlementStatus = SettlementStatus.PENDING
    updated_at: datetime | None = None

    def transition(self, target: SettlementStatus, now: datetime) -> None:
        check_settlement_transition(self.status, target)
        self.status = target
        self.updated_at = now


@dataclass(frozen=True, slots=True, kw_only=True)
class GatewayEvent:
    """A funded/released/refunded callback, already parsed from the gateway payload."""

    transaction_id: UUID
    kind: GatewayEventKind
    gateway_reference: str | None = None
    amount: Decimal | None = None
    currency: str | None = None

    @property
    def target_status(self) -> SettlementStatus:
        return STATUS_FOR_EVENT[self.kind]
