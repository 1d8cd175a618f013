from __future__ import annotations

from uuid import uuid4

import pytest

from swapcore import app as app_module
from swapcore.app import SwapCore, build_swap_core
from swapcore.config.resolution import ResolutionConfig
from swapcore.domain.model import AuctionRanking, SwapStatus
from swapcore.domain.swaps import SwapDraft
from tests.support.fakes import FakeClock, RecordingDispatcher
from tests.support.memory import InMemoryUnitOfWork


def test_build_swap_core_with_custom_unit_of_work(monkeypatch: pytest.MonkeyPatch) -> None:
    def fail_startup() -> None:
        raise AssertionError("startup must not run when a factory is supplied")

    monkeypatch.setattr(app_module, "startup", fail_startup)
    uow = InMemoryUnitOfWork()
    dispatcher = RecordingDispatcher()
    config = ResolutionConfig(auction_ranking=AuctionRanking.BOOKING_FIRST)

    core = build_swap_core(
        unit_of_work_factory=lambda: uow, config=config, clock=FakeClock(), notifier=dispatcher
    )
    owner = uuid4()
    swap = core.create_swap(SwapDraft(owner_id=owner))

    assert isinstance(core, SwapCore)
    assert core.context.config.auction_ranking is AuctionRanking.BOOKING_FIRST
    assert uow.repositories.swaps.get(swap.id) is swap
    assert uow.commits == 1
    assert core.cancel_swap(swap.id, owner).status is SwapStatus.CANCELLED


def test_build_swap_core_starts_the_database_adapter(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []
    monkeypatch.setattr(app_module, "is_started", lambda: False)
    monkeypatch.setattr(app_module, "startup", lambda: calls.append("startup"))

    core = build_swap_core()

    assert calls == ["startup"]
    assert core.context.uow_factory is app_module.SqlAlchemySwapUnitOfWork
