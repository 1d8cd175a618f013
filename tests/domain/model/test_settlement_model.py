from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from swapcore.domain.errors import SettlementError
from swapcore.domain.model import EscrowAccount, PaymentTransaction, SettlementStatus
from tests.support.fakes import DEFAULT_NOW


def _transaction() -> PaymentTransaction:
    return PaymentTransaction(
        proposal_id=uuid4(),
        payer_id=uuid4(),
        recipient_id=uuid4(),
        amount=Decimal("200.00"),
        currency="USD",
    )


def test_transaction_moves_pending_funded_released() -> None:
    transaction = _transaction()

    transaction.transition(SettlementStatus.FUNDED, DEFAULT_NOW)
    transaction.transition(SettlementStatus.RELEASED, DEFAULT_NOW)

    assert transaction.status is SettlementStatus.RELEASED
    assert transaction.funded_at == DEFAULT_NOW
    assert transaction.settled_at == DEFAULT_NOW
    assert transaction.version == 3


@pytest.mark.parametrize(
    ("path", "illegal"),
    [
        ((), SettlementStatus.RELEASED),
        ((SettlementStatus.FUNDED,), SettlementStatus.FUNDED),
        ((SettlementStatus.FUNDED, SettlementStatus.RELEASED), SettlementStatus.FUNDED),
        ((SettlementStatus.FUNDED, SettlementStatus.REFUNDED), SettlementStatus.RELEASED),
    ],
)
def test_illegal_transitions_leave_state_untouched(
    path: tuple[SettlementStatus, ...], illegal: SettlementStatus
) -> None:
    transaction = _transaction()
    for status in path:
        transaction.transition(status, DEFAULT_NOW)
    before = (transaction.status, transaction.version)

    with pytest.raises(SettlementError):
        transaction.transition(illegal, DEFAULT_NOW)

    assert (transaction.status, transaction.version) == before


def test_escrow_follows_same_machine() -> None:
    escrow = EscrowAccount(
        transaction_id=uuid4(), proposal_id=uuid4(), amount=Decimal(5), currency="USD"
    )

    with pytest.raises(SettlementError):
        escrow.transition(SettlementStatus.REFUNDED, DEFAULT_NOW)
    escrow.transition(SettlementStatus.FUNDED, DEFAULT_NOW)
    escrow.transition(SettlementStatus.REFUNDED, DEFAULT_NOW)

    assert escrow.status is SettlementStatus.REFUNDED
