from __future__ import annotations


class GatewayError(Exception):
    """Failure in a collaborator outside the parsing engine."""


class StoreError(GatewayError):
    pass


class NotificationError(GatewayError):
    pass


class TransientHTTPError(GatewayError):
    """429, 5xx or a dropped connection; safe to retry."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class InvalidInboundMessage(GatewayError):
    """Inbound payload missing text or sender, or from an unsupported channel."""
