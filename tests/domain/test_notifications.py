from __future__ import annotations

import logging
from uuid import uuid4

import pytest

from swapcore.domain.notifications import NotificationKind, Outbox, publish
from tests.support.fakes import FailingDispatcher, RecordingDispatcher


def test_outbox_deduplicates_recipients_and_stringifies_attributes() -> None:
    owner, other = uuid4(), uuid4()
    outbox = Outbox()

    outbox.add(NotificationKind.TARGETED, uuid4(), owner, None, other, owner, amount=12)

    (notification,) = outbox
    assert notification.recipients == (owner, other)
    assert notification.attributes == {"amount": "12"}


def test_publish_delivers_in_order() -> None:
    outbox = Outbox()
    outbox.add(NotificationKind.PROPOSAL_CREATED, uuid4())
    outbox.add(NotificationKind.PROPOSAL_ACCEPTED, uuid4())
    dispatcher = RecordingDispatcher()

    assert publish(dispatcher, outbox) == 2
    assert dispatcher.kinds() == [
        NotificationKind.PROPOSAL_CREATED,
        NotificationKind.PROPOSAL_ACCEPTED,
    ]


def test_publish_without_dispatcher_is_a_no_op() -> None:
    outbox = Outbox()
    outbox.add(NotificationKind.SWAP_CANCELLED, uuid4())

    assert publish(None, outbox) == 0


def test_dispatch_failures_are_logged_and_skipped(caplog: pytest.LogCaptureFixture) -> None:
    outbox = Outbox()
    outbox.add(NotificationKind.AUCTION_CLOSED, uuid4())
    outbox.add(NotificationKind.SWAP_CANCELLED, uuid4())
    dispatcher = FailingDispatcher()

    with caplog.at_level(logging.ERROR, logger="swapcore.domain.notifications"):
        delivered = publish(dispatcher, outbox)

    assert delivered == 0
    assert dispatcher.calls == 2
    assert "could not be dispatched" in caplog.text
