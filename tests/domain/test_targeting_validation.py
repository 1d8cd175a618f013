from __future__ import annotations

from datetime import timedelta

import pytest

from swapcore.domain.errors import AuthorizationError, ExpiredError, ValidationError
from swapcore.domain.targeting.validation import RestrictionKind, validate_targeting
from tests.support.builders import make_auction_swap, make_swap
from tests.support.fakes import DEFAULT_NOW


def test_valid_targeting_has_no_restrictions() -> None:
    source, target = make_swap(), make_swap()

    validation = validate_targeting(source, target, source.owner_id, DEFAULT_NOW)

    assert validation.can_target
    validation.raise_first()


def test_not_owner_is_reported_first() -> None:
    source = make_swap()
    stranger = make_swap().owner_id

    validation = validate_targeting(source, source, stranger, DEFAULT_NOW)

    assert validation.restrictions[0].kind is RestrictionKind.NOT_OWNER
    assert RestrictionKind.SAME_SWAP in validation.kinds()
    with pytest.raises(AuthorizationError):
        validation.raise_first()


def test_same_swap_is_a_validation_error() -> None:
    source = make_swap()

    with pytest.raises(ValidationError, match="itself"):
        validate_targeting(source, source, source.owner_id, DEFAULT_NOW).raise_first()


def test_targeting_own_swap_is_restricted() -> None:
    source = make_swap()
    target = make_swap(owner_id=source.owner_id)

    validation = validate_targeting(source, target, source.owner_id, DEFAULT_NOW)

    assert validation.kinds() == {RestrictionKind.OWN_TARGET}


def test_unavailable_swaps_are_reported() -> None:
    source, target = make_swap(), make_swap()
    source.cancel(DEFAULT_NOW)
    target.mark_matched(DEFAULT_NOW)

    validation = validate_targeting(source, target, source.owner_id, DEFAULT_NOW)

    assert validation.kinds() == {
        RestrictionKind.SOURCE_UNAVAILABLE,
        RestrictionKind.TARGET_UNAVAILABLE,
    }


def test_closed_auction_target_raises_expired() -> None:
    source = make_swap()
    target = make_auction_swap(ends_at=DEFAULT_NOW - timedelta(minutes=1))

    validation = validate_targeting(source, target, source.owner_id, DEFAULT_NOW)

    assert validation.kinds() == {RestrictionKind.AUCTION_CLOSED}
    with pytest.raises(ExpiredError):
        validation.raise_first()
