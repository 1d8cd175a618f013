"""Pydantic models describing payment gateway callback payloads."""

from __future__ import annotations

from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

GatewayEventName = Literal["payment.funded", "escrow.released", "escrow.refunded"]


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class GatewayBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class GatewayCallback(GatewayBaseModel):
    event: GatewayEventName
    transaction_id: UUID = Field(alias="transactionId")
    reference: str | None = None
    amount: Decimal | None = Field(default=None, gt=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)

    _normalize_reference = field_validator("reference", "currency", mode="before")(_blank_to_none)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str | None) -> str | None:
        return value.upper() if value is not None else None
