"""SQLAlchemy mapping metadata for the swapcore domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    Uuid,
    orm,
    text,
)
from sqlalchemy.orm import configure_mappers

from swapcore.domain.model import (
    AcceptanceStrategy,
    EdgeStatus,
    EscrowAccount,
    PaymentTransaction,
    PaymentType,
    Proposal,
    ProposalStatus,
    SettlementStatus,
    Swap,
    SwapStatus,
    TargetEdge,
    TargetingEvent,
    TargetingEventKind,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class MoneyType(TypeDecorator[Decimal]):
    """Exact decimal amounts stored as text so every backend round-trips them unchanged."""

    impl = String(40)
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return str(Decimal(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> Decimal | None:
        _ = dialect
        if value is None:
            return None
        return Decimal(value)


class PaymentTypeSetType(TypeDecorator[frozenset[PaymentType]]):
    impl = String
    cache_ok = True

    def process_bind_param(
        self, value: frozenset[PaymentType] | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(sorted(item.value for item in value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> frozenset[PaymentType]:
        _ = dialect
        if value is None:
            return frozenset()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return frozenset()
        items = cast(list[Any], loaded)
        return frozenset(PaymentType(item) for item in items if isinstance(item, str))


def _enum[TEnum: StrEnum](enum_cls: type[TEnum]) -> Enum:
    """Store the lowercase enum value, which partial indexes and raw SQL rely on."""

    return Enum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

ACTIVE_EDGE_CLAUSE = text("status = 'active'")

swap_table = Table(
    "swap",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("owner_id", UUIDColumnType, nullable=False, index=True),
    Column("acceptance_strategy", _enum(AcceptanceStrategy), nullable=False),
    Column("payment_types", PaymentTypeSetType(), nullable=False),
    Column("auction_end_at", UTCDateTime(), nullable=True),
    Column("min_cash_amount", MoneyType(), nullable=True),
    Column("max_cash_amount", MoneyType(), nullable=True),
    Column("currency", String(3), nullable=False),
    Column("booking_id", UUIDColumnType, nullable=True),
    Column("status", _enum(SwapStatus), nullable=False),
    Column("version", Integer, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index("ix_swap_status_auction_end", "status", "auction_end_at"),
)

target_edge_table = Table(
    "target_edge",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("source_swap_id", UUIDColumnType, ForeignKey("swap.id"), nullable=False),
    Column("target_swap_id", UUIDColumnType, ForeignKey("swap.id"), nullable=False, index=True),
    Column("status", _enum(EdgeStatus), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Column("ledger_reference", String, nullable=True),
    Index("ix_target_edge_source", "source_swap_id"),
    # at most one active edge per source
    Index(
        "uq_target_edge_active_source",
        "source_swap_id",
        unique=True,
        sqlite_where=ACTIVE_EDGE_CLAUSE,
        postgresql_where=ACTIVE_EDGE_CLAUSE,
    ),
)

targeting_event_table = Table(
    "targeting_event",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("kind", _enum(TargetingEventKind), nullable=False),
    Column("source_swap_id", UUIDColumnType, nullable=False, index=True),
    Column("target_swap_id", UUIDColumnType, nullable=True, index=True),
    Column("previous_target_swap_id", UUIDColumnType, nullable=True, index=True),
    Column("actor_id", UUIDColumnType, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
)

proposal_table = Table(
    "proposal",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("source_swap_id", UUIDColumnType, ForeignKey("swap.id"), nullable=False),
    Column("target_swap_id", UUIDColumnType, ForeignKey("swap.id"), nullable=True, index=True),
    Column("proposer_id", UUIDColumnType, nullable=False),
    Column("target_owner_id", UUIDColumnType, nullable=False),
    Column("type", _enum(PaymentType), nullable=False),
    Column("cash_amount", MoneyType(), nullable=True),
    Column("currency", String(3), nullable=False),
    Column("booking_id", UUIDColumnType, nullable=True),
    Column("message", String, nullable=True),
    Column("status", _enum(ProposalStatus), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("responded_at", UTCDateTime(), nullable=True),
    Column("responded_by", UUIDColumnType, nullable=True),
    Column("rejection_reason", String, nullable=True),
    Column("ledger_reference", String, nullable=True),
    Index("ix_proposal_swap_status", "source_swap_id", "status"),
)

payment_transaction_table = Table(
    "payment_transaction",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "proposal_id", UUIDColumnType, ForeignKey("proposal.id"), nullable=False, unique=True
    ),
    Column("payer_id", UUIDColumnType, nullable=False),
    Column("recipient_id", UUIDColumnType, nullable=False),
    Column("amount", MoneyType(), nullable=False),
    Column("currency", String(3), nullable=False),
    Column("status", _enum(SettlementStatus), nullable=False),
    Column("gateway_reference", String, nullable=True),
    Column("version", Integer, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Column("funded_at", UTCDateTime(), nullable=True),
    Column("settled_at", UTCDateTime(), nullable=True),
)

escrow_account_table = Table(
    "escrow_account",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "transaction_id",
        UUIDColumnType,
        ForeignKey("payment_transaction.id"),
        nullable=False,
        unique=True,
    ),
    Column("proposal_id", UUIDColumnType, nullable=False),
    Column("amount", MoneyType(), nullable=False),
    Column("currency", String(3), nullable=False),
    Column("status", _enum(SettlementStatus), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model.

    Swaps and payment transactions carry a ``version`` the domain increments on every
    change; SQLAlchemy adds ``WHERE version = <loaded>`` to their UPDATEs and raises
    ``StaleDataError`` when another writer got there first.
    """

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        Swap,
        swap_table,
        version_id_col=swap_table.c.version,
        version_id_generator=False,
    )
    mapper_registry.map_imperatively(TargetEdge, target_edge_table)
    mapper_registry.map_imperatively(TargetingEvent, targeting_event_table)
    mapper_registry.map_imperatively(Proposal, proposal_table)
    mapper_registry.map_imperatively(
        PaymentTransaction,
        payment_transaction_table,
        version_id_col=payment_transaction_table.c.version,
        version_id_generator=False,
    )
    mapper_registry.map_imperatively(EscrowAccount, escrow_account_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
