"""Translate gateway callbacks into domain ``GatewayEvent`` values."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError as PydanticValidationError

from swapcore.domain.errors import ValidationError
from swapcore.domain.model import GatewayEvent, GatewayEventKind

from .schema import GatewayCallback

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

KIND_BY_EVENT: Final[dict[str, GatewayEventKind]] = {
    "payment.funded": GatewayEventKind.FUNDED,
    "escrow.released": GatewayEventKind.RELEASED,
    "escrow.refunded": GatewayEventKind.REFUNDED,
}


def parse_callback(payload: Mapping[str, object] | str | bytes) -> GatewayCallback:
    try:
        if isinstance(payload, str | bytes):
            return GatewayCallback.model_validate_json(payload)
        return GatewayCallback.model_validate(payload)
    except PydanticValidationError as exc:
        log.warning("Rejected gateway callback: %s", exc.errors(include_url=False))
        raise ValidationError(f"Malformed gateway callback: {exc.error_count()} error(s)") from exc


def translate_callback(payload: Mapping[str, object] | str | bytes) -> GatewayEvent:
    """Parse a raw callback (JSON text or decoded mapping) into a ``GatewayEvent``."""

    callback = parse_callback(payload)
    return GatewayEvent(
        transaction_id=callback.transaction_id,
        kind=KIND_BY_EVENT[callback.event],
        gateway_reference=callback.reference,
        amount=callback.amount,
        currency=callback.currency,
    )
