"""Run callables on several threads released at the same instant."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from swapcore.domain.errors import SwapCoreError

if TYPE_CHECKING:
    from collections.abc import Callable


def race[T](*calls: Callable[[], T]) -> list[T | SwapCoreError]:
    """Return each call's result or domain error, in call order."""

    barrier = threading.Barrier(len(calls))
    outcomes: dict[int, T | SwapCoreError] = {}

    def run(index: int, call: Callable[[], T]) -> None:
        barrier.wait()
        try:
            outcomes[index] = call()
        except SwapCoreError as exc:
            outcomes[index] = exc

    threads = [
        threading.Thread(target=run, args=(index, call)) for index, call in enumerate(calls)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return [outcomes[index] for index in range(len(calls))]
