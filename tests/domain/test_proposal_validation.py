from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from swapcore.domain.errors import AuthorizationError, ValidationError
from swapcore.domain.model import PaymentType, ProposalPayload
from swapcore.domain.ports.collaborators import BookingSummary
from swapcore.domain.proposals.validation import (
    ProposalIssueKind,
    ProposalValidation,
    validate_proposal,
)
from tests.support.builders import make_swap
from tests.support.fakes import DEFAULT_NOW


def _kinds(validation: ProposalValidation) -> list[ProposalIssueKind]:
    return [issue.kind for issue in validation.issues]


def test_cash_within_range_is_valid() -> None:
    swap = make_swap(min_cash="100", max_cash="500")

    validation = validate_proposal(
        swap, uuid4(), PaymentType.CASH, ProposalPayload(cash_amount=Decimal(100))
    )

    assert validation.is_valid


@pytest.mark.parametrize(
    ("amount", "kind"),
    [
        (None, ProposalIssueKind.AMOUNT_MISSING),
        (Decimal(0), ProposalIssueKind.AMOUNT_NOT_POSITIVE),
        (Decimal("-5"), ProposalIssueKind.AMOUNT_NOT_POSITIVE),
        (Decimal("99.99"), ProposalIssueKind.AMOUNT_OUT_OF_RANGE),
        (Decimal("500.01"), ProposalIssueKind.AMOUNT_OUT_OF_RANGE),
    ],
)
def test_cash_amount_problems(amount: Decimal | None, kind: ProposalIssueKind) -> None:
    swap = make_swap(min_cash="100", max_cash="500")

    validation = validate_proposal(
        swap, uuid4(), PaymentType.CASH, ProposalPayload(cash_amount=amount)
    )

    assert _kinds(validation) == [kind]
    with pytest.raises(ValidationError):
        validation.raise_first()


def test_disallowed_type_is_rejected() -> None:
    swap = make_swap(payment_types={PaymentType.BOOKING})

    validation = validate_proposal(
        swap, uuid4(), PaymentType.CASH, ProposalPayload(cash_amount=Decimal(10))
    )

    assert _kinds(validation) == [ProposalIssueKind.TYPE_NOT_ACCEPTED]


def test_owner_cannot_propose_to_own_swap() -> None:
    swap = make_swap()

    validation = validate_proposal(
        swap, swap.owner_id, PaymentType.CASH, ProposalPayload(cash_amount=Decimal(10))
    )

    with pytest.raises(AuthorizationError):
        validation.raise_first()


def test_booking_offer_must_be_open_and_owned() -> None:
    swap = make_swap()
    offered = make_swap()
    offered.cancel(DEFAULT_NOW)
    payload = ProposalPayload(offered_swap_id=offered.id)

    not_owned = validate_proposal(swap, uuid4(), PaymentType.BOOKING, payload, offered_swap=offered)
    cancelled = validate_proposal(
        swap, offered.owner_id, PaymentType.BOOKING, payload, offered_swap=offered
    )
    missing = validate_proposal(swap, uuid4(), PaymentType.BOOKING, ProposalPayload())

    assert _kinds(not_owned) == [ProposalIssueKind.OFFER_INVALID]
    assert "another user" in not_owned.issues[0].message
    assert _kinds(cancelled) == [ProposalIssueKind.OFFER_INVALID]
    assert _kinds(missing) == [ProposalIssueKind.OFFER_MISSING]


def test_booking_lookup_results_are_checked() -> None:
    swap = make_swap()
    offered = make_swap()
    proposer = offered.owner_id
    payload = ProposalPayload(offered_swap_id=offered.id, booking_id=uuid4())

    unknown = validate_proposal(
        swap, proposer, PaymentType.BOOKING, payload, offered_swap=offered, booking_checked=True
    )
    unavailable = validate_proposal(
        swap,
        proposer,
        PaymentType.BOOKING,
        payload,
        offered_swap=offered,
        booking=BookingSummary(id=uuid4(), owner_id=proposer, available=False),
        booking_checked=True,
    )

    assert _kinds(unknown) == [ProposalIssueKind.BOOKING_INVALID]
    assert _kinds(unavailable) == [ProposalIssueKind.BOOKING_INVALID]
