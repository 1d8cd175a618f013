"""Gateway callbacks moving payments and escrow through their lifecycle."""

from __future__ import annotations

import json
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from swapcore.domain.errors import NotFoundError, SettlementError, ValidationError
from swapcore.domain.model import (
    GatewayEvent,
    GatewayEventKind,
    PaymentType,
    ProposalPayload,
    SettlementStatus,
)
from swapcore.domain.notifications import NotificationKind
from tests.support.builders import register_swap

if TYPE_CHECKING:
    from swapcore.app import SwapCore
    from swapcore.domain.model import PaymentTransaction
    from tests.support.fakes import RecordingDispatcher


@pytest.fixture
def transaction(swap_core: SwapCore) -> PaymentTransaction:
    swap = register_swap(swap_core)
    proposal = swap_core.create_proposal(
        swap.id, uuid4(), PaymentType.CASH, ProposalPayload(cash_amount=Decimal("250.00"))
    )
    swap_core.accept_proposal(proposal.id, swap.owner_id)
    settlement = swap_core.get_settlement(proposal.id)
    assert settlement is not None
    return settlement.transaction


def _callback(transaction: PaymentTransaction, event: str, **extra: object) -> str:
    return json.dumps({"event": event, "transactionId": str(transaction.id), **extra})


def test_funded_then_released(
    swap_core: SwapCore, transaction: PaymentTransaction, dispatcher: RecordingDispatcher
) -> None:
    funded = swap_core.handle_gateway_callback(
        _callback(transaction, "payment.funded", amount="250.00", reference="pay_1")
    )
    released = swap_core.handle_gateway_callback(_callback(transaction, "escrow.released"))

    assert funded.status is SettlementStatus.FUNDED
    assert released.status is SettlementStatus.RELEASED
    settlement = swap_core.get_settlement(transaction.proposal_id)
    assert settlement is not None
    assert settlement.transaction.gateway_reference == "pay_1"
    assert settlement.escrow is not None
    assert settlement.escrow.status is SettlementStatus.RELEASED
    assert dispatcher.kinds().count(NotificationKind.SETTLEMENT_UPDATED) == 3


def test_refund_after_funding(swap_core: SwapCore, transaction: PaymentTransaction) -> None:
    swap_core.apply_gateway_event(
        GatewayEvent(transaction_id=transaction.id, kind=GatewayEventKind.FUNDED)
    )

    refunded = swap_core.apply_gateway_event(
        GatewayEvent(transaction_id=transaction.id, kind=GatewayEventKind.REFUNDED)
    )

    assert refunded.status is SettlementStatus.REFUNDED


def test_release_before_funding_is_illegal(
    swap_core: SwapCore, transaction: PaymentTransaction
) -> None:
    with pytest.raises(SettlementError, match="pending -> released"):
        swap_core.apply_gateway_event(
            GatewayEvent(transaction_id=transaction.id, kind=GatewayEventKind.RELEASED)
        )

    settlement = swap_core.get_settlement(transaction.proposal_id)
    assert settlement is not None
    assert settlement.status is SettlementStatus.PENDING


def test_funded_amount_must_match(swap_core: SwapCore, transaction: PaymentTransaction) -> None:
    with pytest.raises(SettlementError, match="does not match"):
        swap_core.apply_gateway_event(
            GatewayEvent(
                transaction_id=transaction.id,
                kind=GatewayEventKind.FUNDED,
                amount=Decimal("249.99"),
            )
        )


def test_funded_currency_must_match(
    swap_core: SwapCore, transaction: PaymentTransaction
) -> None:
    with pytest.raises(SettlementError, match="currency EUR does not match USD"):
        swap_core.handle_gateway_callback(
            _callback(transaction, "payment.funded", amount="250.00", currency="eur")
        )

    settlement = swap_core.get_settlement(transaction.proposal_id)
    assert settlement is not None
    assert settlement.status is SettlementStatus.PENDING
    funded = swap_core.handle_gateway_callback(
        _callback(transaction, "payment.funded", amount="250.00", currency="usd")
    )
    assert funded.status is SettlementStatus.FUNDED


def test_terminal_states_are_final(swap_core: SwapCore, transaction: PaymentTransaction) -> None:
    for kind in (GatewayEventKind.FUNDED, GatewayEventKind.RELEASED):
        swap_core.apply_gateway_event(GatewayEvent(transaction_id=transaction.id, kind=kind))

    with pytest.raises(SettlementError):
        swap_core.apply_gateway_event(
            GatewayEvent(transaction_id=transaction.id, kind=GatewayEventKind.REFUNDED)
        )


def test_unknown_transaction_and_malformed_payload(swap_core: SwapCore) -> None:
    with pytest.raises(NotFoundError):
        swap_core.apply_gateway_event(
            GatewayEvent(transaction_id=uuid4(), kind=GatewayEventKind.FUNDED)
        )
    with pytest.raises(ValidationError):
        swap_core.handle_gateway_callback({"event": "payment.funded"})
