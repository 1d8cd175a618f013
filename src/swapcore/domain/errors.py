"""Error taxonomy surfaced by the swap core.

Validation, authorization, conflict, cycle, not-found and expiry errors describe the
caller's request and are never retried; callers resubmit with fresh state.
``StaleVersionError`` and ``TransientStoreError`` are raised by persistence adapters
and handled by the unit-of-work runner.
"""

from __future__ import annotations


class SwapCoreError(Exception):
    """Base class for every error raised by the swap core."""


class ValidationError(SwapCoreError):
    """Malformed input, self-targeting, amount out of range or disallowed payment type."""


class AuthorizationError(SwapCoreError):
    """The acting user is not allowed to act on the resource."""


class ConflictError(SwapCoreError):
    """Duplicate active edge, optimistic version mismatch, or already-responded proposal."""


class CycleError(SwapCoreError):
    """The requested targeting edge would close a directed cycle."""


class NotFoundError(SwapCoreError):
    """A referenced swap, proposal or settlement record does not exist."""


class ExpiredError(SwapCoreError):
    """The auction window for a swap has closed."""


class SettlementError(SwapCoreError):
    """Illegal payment or escrow status transition."""


class StoreUnavailableError(SwapCoreError):
    """The backing store kept failing after bounded retries."""


class StaleVersionError(SwapCoreError):
    """A versioned row changed between read and write."""


class TransientStoreError(SwapCoreError):
    """A store access failed in a way that may succeed when retried."""


__all__ = [
    "AuthorizationError",
    "ConflictError",
    "CycleError",
    "ExpiredError",
    "NotFoundError",
    "SettlementError",
    "StaleVersionError",
    "StoreUnavailableError",
    "SwapCoreError",
    "TransientStoreError",
    "ValidationError",
]
