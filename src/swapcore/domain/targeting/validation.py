"""Pure eligibility checks for targeting one swap from another."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from swapcore.domain.auction_clock import is_closed
from swapcore.domain.errors import (
    AuthorizationError,
    ExpiredError,
    SwapCoreError,
    ValidationError,
)

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from swapcore.domain.model import Swap


class RestrictionKind(StrEnum):
    SAME_SWAP = "same_swap"
    NOT_OWNER = "not_owner"
    OWN_TARGET = "own_target"
    SOURCE_UNAVAILABLE = "source_unavailable"
    TARGET_UNAVAILABLE = "target_unavailable"
    AUCTION_CLOSED = "auction_closed"


_ERROR_FOR_KIND: dict[RestrictionKind, type[SwapCoreError]] = {
    RestrictionKind.SAME_SWAP: ValidationError,
    RestrictionKind.NOT_OWNER: AuthorizationError,
    RestrictionKind.OWN_TARGET: ValidationError,
    RestrictionKind.SOURCE_UNAVAILABLE: ValidationError,
    RestrictionKind.TARGET_UNAVAILABLE: ValidationError,
    RestrictionKind.AUCTION_CLOSED: ExpiredError,
}


@dataclass(frozen=True, slots=True)
class TargetingRestriction:
    kind: RestrictionKind
    message: str

    def to_error(self) -> SwapCoreError:
        return _ERROR_FOR_KIND[self.kind](self.message)


@dataclass(frozen=True, slots=True)
class TargetingValidation:
    restrictions: tuple[TargetingRestriction, ...] = field(default=())

    @property
    def can_target(self) -> bool:
        return not self.restrictions

    def kinds(self) -> set[RestrictionKind]:
        return {restriction.kind for restriction in self.restrictions}

    def raise_first(self) -> None:
        """Raise the error for the most important restriction, if any."""
        if self.restrictions:
            raise self.restrictions[0].to_error()


def validate_targeting(
    source: Swap, target: Swap, acting_user_id: UUID, now: datetime
) -> TargetingValidation:
    """Collect every reason ``acting_user_id`` may not point ``source`` at ``target``.

    Restrictions are ordered by severity: authorization first, then shape of the
    request, then the state of the swaps involved.
    """

    found: list[TargetingRestriction] = []
    if source.owner_id != acting_user_id:
        found.append(
            TargetingRestriction(
                RestrictionKind.NOT_OWNER,
                f"User {acting_user_id} does not own swap {source.id}",
            )
        )
    if source.id == target.id:
        found.append(TargetingRestriction(RestrictionKind.SAME_SWAP, "A swap cannot target itself"))
    elif target.owner_id == acting_user_id:
        found.append(
            TargetingRestriction(
                RestrictionKind.OWN_TARGET, "Swaps cannot target another swap of the same owner"
            )
        )
    if not source.is_open:
        found.append(
            TargetingRestriction(
                RestrictionKind.SOURCE_UNAVAILABLE, f"Swap {source.id} is {source.status}"
            )
        )
    if source.id != target.id and not target.is_open:
        found.append(
            TargetingRestriction(
                RestrictionKind.TARGET_UNAVAILABLE, f"Swap {target.id} is {target.status}"
            )
        )
    if target.is_auction and is_closed(now, target.auction_end_at):
        found.append(
            TargetingRestriction(
                RestrictionKind.AUCTION_CLOSED, f"The auction for swap {target.id} has ended"
            )
        )
    return TargetingValidation(tuple(found))


__all__ = [
    "RestrictionKind",
    "TargetingRestriction",
    "TargetingValidation",
    "validate_targeting",
]
