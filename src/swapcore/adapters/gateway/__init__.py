"""Public interface for the payment gateway callback adapter."""

from __future__ import annotations

from .schema import GatewayCallback
from .translator import parse_callback, translate_callback

__all__ = ["GatewayCallback", "parse_callback", "translate_callback"]
