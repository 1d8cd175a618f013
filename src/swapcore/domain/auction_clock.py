"""Pure evaluation of auction windows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def system_clock() -> datetime:
    return datetime.now(UTC)


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError("Auction clock values must include timezone information")
    return value.astimezone(UTC)


@dataclass(frozen=True, slots=True)
class AuctionStatus:
    is_open: bool
    time_remaining: timedelta

    @classmethod
    def closed(cls) -> AuctionStatus:
        return cls(is_open=False, time_remaining=timedelta(0))


def evaluate(now: datetime, auction_end_at: datetime) -> AuctionStatus:
    """Return whether the window ending at ``auction_end_at`` is still open at ``now``.

    The window is half-open: an auction ending at ``t`` is closed at ``t``.
    """

    remaining = _ensure_aware(auction_end_at) - _ensure_aware(now)
    if remaining <= timedelta(0):
        return AuctionStatus.closed()
    return AuctionStatus(is_open=True, time_remaining=remaining)


def is_closed(now: datetime, auction_end_at: datetime | None) -> bool:
    """``True`` when an auction end time exists and has passed."""

    return auction_end_at is not None and not evaluate(now, auction_end_at).is_open


__all__ = ["AuctionStatus", "Clock", "evaluate", "is_closed", "system_clock"]
