"""SQLAlchemy adapter package for swapcore."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyProposalRepository,
    SqlAlchemySettlementRepository,
    SqlAlchemySwapRepository,
    SqlAlchemyTargetEdgeRepository,
    SqlAlchemyTargetingEventRepository,
)
from .unit_of_work import (
    SqlAlchemySwapUnitOfWork,
    StartupError,
    configured_engine,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyProposalRepository",
    "SqlAlchemySettlementRepository",
    "SqlAlchemySwapRepository",
    "SqlAlchemySwapUnitOfWork",
    "SqlAlchemyTargetEdgeRepository",
    "SqlAlchemyTargetingEventRepository",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
