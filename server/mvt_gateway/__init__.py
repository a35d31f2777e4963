"""
mvt_gateway package

Public API:
    - MovementMessageHandler / build_default_handler
    - FlightStore, InMemoryFlightStore, SupabaseFlightStore
    - Notifier, LoggingNotifier, TwilioNotifier
    - HandlerResult, InboundMessage
    - GatewayError, StoreError, NotificationError, InvalidInboundMessage
"""

from __future__ import annotations

from .errors import (
    GatewayError,
    InvalidInboundMessage,
    NotificationError,
    StoreError,
    TransientHTTPError,
)
from .models import HandlerResult, InboundMessage
from .store import FlightStore, InMemoryFlightStore
from .notifier import LoggingNotifier, Notifier
from .supabase_client import SupabaseFlightStore
from .twilio_client import TwilioNotifier
from .handler import MovementMessageHandler, build_default_handler, compose_success_reply

__all__ = [
    "MovementMessageHandler",
    "build_default_handler",
    "compose_success_reply",
    "FlightStore",
    "InMemoryFlightStore",
    "SupabaseFlightStore",
    "Notifier",
    "LoggingNotifier",
    "TwilioNotifier",
    "HandlerResult",
    "InboundMessage",
    "GatewayError",
    "StoreError",
    "NotificationError",
    "TransientHTTPError",
    "InvalidInboundMessage",
]
