"""Pagination value objects."""

from __future__ import annotations

from dataclasses import dataclass

from swapcore.domain.errors import ValidationError


@dataclass(frozen=True, slots=True)
class PageRequest:
    """1-based page number with a fixed page size."""

    page: int = 1
    size: int = 50

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValidationError("Page numbers start at 1")
        if self.size < 1:
            raise ValidationError("Page size must be positive")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


@dataclass(frozen=True, slots=True)
class Page[T]:
    items: tuple[T, ...]
    page: int
    size: int
    total: int

    @property
    def has_next(self) -> bool:
        return self.page * self.size < self.total
