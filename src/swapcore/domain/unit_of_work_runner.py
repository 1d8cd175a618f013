"""Run an operation inside a unit of work with bounded retries.

Two failure classes are retried, each with its own budget:

* ``TransientStoreError`` (lock timeouts, dropped connections) is retried with
  exponential backoff and surfaces as ``StoreUnavailableError`` once exhausted.
* ``StaleVersionError`` (a versioned row changed underneath the attempt) re-runs the
  whole operation against fresh state and surfaces as ``ConflictError``.

Every other exception propagates untouched after the unit of work rolled back.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from swapcore.domain.errors import (
    ConflictError,
    StaleVersionError,
    StoreUnavailableError,
    TransientStoreError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from swapcore.config.resolution import ResolutionConfig
    from swapcore.domain.ports.unit_of_work import SwapUnitOfWork

    type UnitOfWorkFactory = Callable[[], SwapUnitOfWork]

log = logging.getLogger(__name__)


def _last_error(exc: RetryError) -> BaseException | None:
    return exc.last_attempt.exception()


def run_in_unit_of_work[T](
    factory: UnitOfWorkFactory,
    operation: Callable[[SwapUnitOfWork], T],
    *,
    config: ResolutionConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Execute ``operation`` in a fresh unit of work and commit it."""

    def attempt() -> T:
        with factory() as uow:
            result = operation(uow)
            uow.commit()
        return result

    transient = Retrying(
        retry=retry_if_exception_type(TransientStoreError),
        stop=stop_after_attempt(config.transient_attempts),
        wait=wait_exponential(multiplier=config.backoff_seconds, max=config.max_backoff_seconds),
        before_sleep=before_sleep_log(log, logging.WARNING),
        sleep=sleep,
    )

    def attempt_with_backoff() -> T:
        try:
            return transient(attempt)
        except RetryError as exc:
            raise StoreUnavailableError(
                f"Store unavailable after {config.transient_attempts} attempts"
            ) from _last_error(exc)

    optimistic = Retrying(
        retry=retry_if_exception_type(StaleVersionError),
        stop=stop_after_attempt(config.optimistic_attempts),
        wait=wait_random(0, config.backoff_seconds),
        before_sleep=before_sleep_log(log, logging.INFO),
        sleep=sleep,
    )
    try:
        return optimistic(attempt_with_backoff)
    except RetryError as exc:
        log.info("Giving up after %d stale-version attempts", config.optimistic_attempts)
        raise ConflictError(
            "The record was modified concurrently; retry with fresh state"
        ) from _last_error(exc)


__all__ = ["run_in_unit_of_work"]
