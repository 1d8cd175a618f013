from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

import pytest

from swapcore import main as main_module
from swapcore.config.errors import ConfigurationError
from swapcore.domain.consistency import ConsistencyIssue, ConsistencyReport, IssueKind
from swapcore.domain.model import SwapStatus
from swapcore.domain.proposals.resolver import AuctionClosure


@dataclass
class FakeCore:
    closures: list[AuctionClosure] = field(default_factory=list)
    report: ConsistencyReport = field(default_factory=ConsistencyReport)
    audits: list[bool] = field(default_factory=list)

    def close_expired_auctions(self) -> list[AuctionClosure]:
        return self.closures

    def audit(self, *, repair: bool = False) -> ConsistencyReport:
        self.audits.append(repair)
        return self.report


def _install(monkeypatch: pytest.MonkeyPatch, core: FakeCore) -> None:
    monkeypatch.setattr(main_module, "build_swap_core", lambda: core)


def _exit_code(argv: list[str]) -> int | str | None:
    with pytest.raises(SystemExit) as excinfo:
        main_module.main(argv)
    return excinfo.value.code


def test_sweep_prints_closures(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    swap_id, winner_id = uuid4(), uuid4()
    core = FakeCore(closures=[AuctionClosure(swap_id, SwapStatus.MATCHED, winner_id)])
    _install(monkeypatch, core)

    assert _exit_code(["sweep-auctions"]) == 0

    out = capsys.readouterr().out
    assert f"{swap_id} matched winner={winner_id}" in out
    assert "Closed 1 auction(s)" in out


def test_audit_without_issues(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    core = FakeCore()
    _install(monkeypatch, core)

    assert _exit_code(["--verbose", "audit"]) == 0

    assert core.audits == [False]
    assert "No consistency issues found" in capsys.readouterr().out


def test_audit_repair_reports_remaining_issues(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    subject = uuid4()
    issue = ConsistencyIssue(IssueKind.MULTIPLE_ACCEPTED, subject, "2 accepted proposals")
    core = FakeCore(report=ConsistencyReport((issue,), repaired=4))
    _install(monkeypatch, core)

    assert _exit_code(["audit", "--repair"]) == 1

    out = capsys.readouterr().out
    assert core.audits == [True]
    assert "Repaired 4 issue(s)" in out
    assert f"multiple_accepted {subject}: 2 accepted proposals" in out


def test_configuration_errors_exit_with_two(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def broken() -> FakeCore:
        raise ConfigurationError("Invalid value for SWAPCORE_MAX_CHAIN_LENGTH: 'x'")

    monkeypatch.setattr(main_module, "build_swap_core", broken)

    assert _exit_code(["sweep-auctions"]) == 2
    assert "Configuration error" in capsys.readouterr().err


def test_missing_command_is_a_usage_error() -> None:
    assert _exit_code([]) == 2
