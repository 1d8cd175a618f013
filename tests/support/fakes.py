"""Fake collaborators for swap core tests."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from swapcore.domain.ports.collaborators import BookingSummary, Notification, NotificationKind

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

DEFAULT_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually driven clock; optionally advances by ``step`` on every read."""

    def __init__(self, now: datetime = DEFAULT_NOW, *, step: timedelta | None = None) -> None:
        self._now = now
        self._step = step
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            current = self._now
            if self._step is not None:
                self._now = self._now + self._step
            return current

    def advance(self, **delta: float) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(**delta)
            return self._now

    def set(self, value: datetime) -> None:
        with self._lock:
            self._now = value


@dataclass
class RecordingDispatcher:
    sent: list[Notification] = field(default_factory=list)

    def dispatch(self, notification: Notification) -> None:
        self.sent.append(notification)

    def kinds(self) -> list[NotificationKind]:
        return [notification.kind for notification in self.sent]


class FailingDispatcher:
    def __init__(self) -> None:
        self.calls = 0

    def dispatch(self, notification: Notification) -> None:
        self.calls += 1
        raise RuntimeError(f"mail server down while sending {notification.kind}")


@dataclass
class FakeLedger:
    fail: bool = False
    records: list[tuple[str, UUID, dict[str, str]]] = field(default_factory=list)

    def record(self, kind: str, subject_id: UUID, attributes: Mapping[str, str]) -> str:
        if self.fail:
            raise ConnectionError("ledger unreachable")
        self.records.append((kind, subject_id, dict(attributes)))
        return f"ledger-{len(self.records)}"


@dataclass
class FakeBookingLookup:
    bookings: dict[UUID, BookingSummary] = field(default_factory=dict)

    def add(self, booking_id: UUID, owner_id: UUID, *, available: bool = True) -> BookingSummary:
        summary = BookingSummary(id=booking_id, owner_id=owner_id, available=available)
        self.bookings[booking_id] = summary
        return summary

    def get_booking(self, booking_id: UUID) -> BookingSummary | None:
        return self.bookings.get(booking_id)
