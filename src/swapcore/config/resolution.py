"""Tunables for targeting, proposal resolution and store retries."""

from __future__ import annotations

from dataclasses import dataclass

from swapcore.domain.model.enums import AuctionRanking

from .env import optional_env_var
from .errors import ConfigurationError

DEFAULT_OPTIMISTIC_ATTEMPTS = 3
DEFAULT_TRANSIENT_ATTEMPTS = 4
DEFAULT_BACKOFF_SECONDS = 0.05
DEFAULT_MAX_BACKOFF_SECONDS = 2.0
DEFAULT_MAX_CHAIN_LENGTH = 100_000
DEFAULT_HISTORY_PAGE_SIZE = 50
DEFAULT_CURRENCY = "USD"


@dataclass(frozen=True, slots=True)
class ResolutionConfig:
    optimistic_attempts: int = DEFAULT_OPTIMISTIC_ATTEMPTS
    transient_attempts: int = DEFAULT_TRANSIENT_ATTEMPTS
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS
    max_backoff_seconds: float = DEFAULT_MAX_BACKOFF_SECONDS
    max_chain_length: int = DEFAULT_MAX_CHAIN_LENGTH
    history_page_size: int = DEFAULT_HISTORY_PAGE_SIZE
    auction_ranking: AuctionRanking = AuctionRanking.CASH_FIRST
    default_currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if self.optimistic_attempts < 1 or self.transient_attempts < 1:
            raise ConfigurationError("Retry attempts must be at least 1")
        if self.backoff_seconds < 0 or self.max_backoff_seconds < self.backoff_seconds:
            raise ConfigurationError("Backoff bounds must satisfy 0 <= backoff <= max backoff")
        if self.max_chain_length < 1:
            raise ConfigurationError("Maximum chain length must be positive")
        if self.history_page_size < 1:
            raise ConfigurationError("History page size must be positive")
        if len(self.default_currency) != 3:
            raise ConfigurationError("Default currency must be a three-letter code")


def get_resolution_config() -> ResolutionConfig:
    return ResolutionConfig(
        optimistic_attempts=optional_env_var(
            "SWAPCORE_OPTIMISTIC_ATTEMPTS", DEFAULT_OPTIMISTIC_ATTEMPTS, int
        ),
        transient_attempts=optional_env_var(
            "SWAPCORE_TRANSIENT_ATTEMPTS", DEFAULT_TRANSIENT_ATTEMPTS, int
        ),
        backoff_seconds=optional_env_var("SWAPCORE_BACKOFF_SECONDS", DEFAULT_BACKOFF_SECONDS, float),
        max_backoff_seconds=optional_env_var(
            "SWAPCORE_MAX_BACKOFF_SECONDS", DEFAULT_MAX_BACKOFF_SECONDS, float
        ),
        max_chain_length=optional_env_var(
            "SWAPCORE_MAX_CHAIN_LENGTH", DEFAULT_MAX_CHAIN_LENGTH, int
        ),
        history_page_size=optional_env_var(
            "SWAPCORE_HISTORY_PAGE_SIZE", DEFAULT_HISTORY_PAGE_SIZE, int
        ),
        auction_ranking=optional_env_var(
            "SWAPCORE_AUCTION_RANKING", AuctionRanking.CASH_FIRST, AuctionRanking
        ),
        default_currency=optional_env_var(
            "SWAPCORE_DEFAULT_CURRENCY", DEFAULT_CURRENCY, str.upper
        ),
    )
