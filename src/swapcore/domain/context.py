"""Shared collaborators handed to every coordinator."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from swapcore.config.resolution import ResolutionConfig
from swapcore.domain.auction_clock import system_clock
from swapcore.domain.notifications import Outbox, publish
from swapcore.domain.unit_of_work_runner import run_in_unit_of_work

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime
    from uuid import UUID

    from swapcore.domain.auction_clock import Clock
    from swapcore.domain.ports.collaborators import (
        BookingLookup,
        LedgerRecorder,
        NotificationDispatcher,
    )
    from swapcore.domain.ports.unit_of_work import SwapUnitOfWork

log = logging.getLogger(__name__)


@dataclass(slots=True)
class CoreContext:
    uow_factory: Callable[[], SwapUnitOfWork]
    clock: Clock = system_clock
    config: ResolutionConfig = field(default_factory=ResolutionConfig)
    notifier: NotificationDispatcher | None = None
    ledger: LedgerRecorder | None = None
    bookings: BookingLookup | None = None
    sleep: Callable[[float], None] = time.sleep

    def now(self) -> datetime:
        return self.clock()

    def run[T](self, operation: Callable[[SwapUnitOfWork, Outbox], T]) -> T:
        """Run ``operation`` atomically, then publish the notifications it produced."""

        def attempt(uow: SwapUnitOfWork) -> tuple[T, Outbox]:
            outbox = Outbox()
            return operation(uow, outbox), outbox

        result, outbox = run_in_unit_of_work(
            self.uow_factory, attempt, config=self.config, sleep=self.sleep
        )
        publish(self.notifier, outbox)
        return result

    def ledger_reference(
        self, kind: str, subject_id: UUID, attributes: Mapping[str, str]
    ) -> str | None:
        """Ask the external ledger for an audit identifier; ``None`` when unavailable."""

        if self.ledger is None:
            return None
        try:
            return self.ledger.record(kind, subject_id, attributes)
        except Exception:
            log.warning("Ledger did not record %s for %s", kind, subject_id, exc_info=True)
            return None


__all__ = ["CoreContext"]
