"""Shared fixtures for payment gateway adapter tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

GatewayPayload = dict[str, object]
FIXTURES = Path("tests/data/gateway")


def _load_callbacks() -> list[GatewayPayload]:
    payloads: list[GatewayPayload] = []
    for line in (FIXTURES / "callbacks.jsonl").read_text().splitlines():
        if not line.strip():
            continue
        payloads.append(json.loads(line))
    return payloads


@pytest.fixture
def callback_payloads() -> list[GatewayPayload]:
    return _load_callbacks()


@pytest.fixture
def funded_payload(callback_payloads: list[GatewayPayload]) -> GatewayPayload:
    return callback_payloads[0]
