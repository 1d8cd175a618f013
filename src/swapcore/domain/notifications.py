"""Collect notifications during a unit of work and publish them after commit."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from swapcore.domain.ports.collaborators import Notification, NotificationKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from uuid import UUID

    from swapcore.domain.ports.collaborators import NotificationDispatcher

log = logging.getLogger(__name__)


class Outbox:
    """Notifications produced by one attempt of an operation.

    A fresh outbox is handed to every attempt so retried attempts never leak
    notifications for writes that were rolled back.
    """

    def __init__(self) -> None:
        self._items: list[Notification] = []

    def add(
        self,
        kind: NotificationKind,
        subject_id: UUID,
        *recipients: UUID | None,
        **attributes: object,
    ) -> None:
        unique = tuple(dict.fromkeys(r for r in recipients if r is not None))
        self._items.append(
            Notification(
                kind=kind,
                subject_id=subject_id,
                recipients=unique,
                attributes={key: str(value) for key, value in attributes.items()},
            )
        )

    def __iter__(self) -> Iterator[Notification]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


def publish(dispatcher: NotificationDispatcher | None, notifications: Iterable[Notification]) -> int:
    """Dispatch ``notifications`` one by one; failures are logged and skipped."""

    if dispatcher is None:
        return 0
    delivered = 0
    for notification in notifications:
        try:
            dispatcher.dispatch(notification)
        except Exception:
            log.exception(
                "Notification %s for %s could not be dispatched",
                notification.kind,
                notification.subject_id,
            )
            continue
        delivered += 1
    return delivered


__all__ = ["NotificationKind", "Outbox", "publish"]
