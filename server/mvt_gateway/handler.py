from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from config import (
    REPLY_NEW_RECORD,
    REPLY_PARSE_ERROR,
    REPLY_SAVE_ERROR,
    REPLY_STORED,
    REPLY_UPDATED_RECORD,
)
from logging_utils import log_event
from pipeline import MovementPipeline

from .config import (
    REQUIRE_WHATSAPP_SENDER,
    SUPABASE_ANON_KEY,
    SUPABASE_URL,
    TWILIO_ACCOUNT_SID,
    TWILIO_AUTH_TOKEN,
    TWILIO_WHATSAPP_NUMBER,
)
from .errors import InvalidInboundMessage, NotificationError, StoreError
from .models import HandlerResult, InboundMessage
from .notifier import LoggingNotifier, Notifier
from .store import FlightStore, InMemoryFlightStore
from .supabase_client import SupabaseFlightStore
from .twilio_client import TwilioNotifier
from .utils import is_whatsapp_sender, mask_recipient

logger = logging.getLogger("mvtintel.handler")


def compose_success_reply(summary: List[str], is_new: bool) -> str:
    lines = [REPLY_STORED, REPLY_NEW_RECORD if is_new else REPLY_UPDATED_RECORD]
    lines.extend(summary)
    return "\n".join(lines)


class MovementMessageHandler:
    """
    Boundary between the inbound channel and the parsing engine.

    For each message: check the payload, parse it, look the natural key up,
    upsert the record and reply to the sender. The store and notifier are
    handed in; nothing here reaches for process-wide clients.
    """

    def __init__(
        self,
        store: FlightStore,
        notifier: Notifier,
        pipeline: Optional[MovementPipeline] = None,
        require_whatsapp: bool = REQUIRE_WHATSAPP_SENDER,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.pipeline = pipeline or MovementPipeline()
        self.require_whatsapp = require_whatsapp

    async def __aenter__(self) -> "MovementMessageHandler":
        await asyncio.gather(self.store.__aenter__(), self.notifier.__aenter__())
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await asyncio.gather(
            self.store.__aexit__(None, None, None),
            self.notifier.__aexit__(None, None, None),
        )

    def check_inbound(self, text: Optional[str], sender_id: Optional[str]) -> InboundMessage:
        body = (text or "").strip()
        if not body or not sender_id:
            raise InvalidInboundMessage("missing message text or sender")
        if self.require_whatsapp and not is_whatsapp_sender(sender_id):
            raise InvalidInboundMessage("sender is not a WhatsApp address")
        return InboundMessage(text=body, sender_id=sender_id)

    async def handle(self, text: Optional[str], sender_id: Optional[str]) -> HandlerResult:
        try:
            inbound = self.check_inbound(text, sender_id)
        except InvalidInboundMessage as e:
            log_event(
                logger,
                "inbound_rejected",
                level=logging.WARNING,
                reason=str(e),
                sender=mask_recipient(sender_id),
            )
            raise

        outcome = self.pipeline.process(inbound.text)
        record = outcome.record

        if record is None:
            result = HandlerResult(
                status="unparseable",
                reply=REPLY_PARSE_ERROR,
                failed_stage=outcome.failed_stage,
            )
        else:
            try:
                existing = await self.store.lookup(record.flight_no, record.flight_date)
                await self.store.upsert(record)
            except StoreError as e:
                log_event(
                    logger,
                    "record_store_failed",
                    level=logging.ERROR,
                    flight_no=record.flight_no,
                    flight_date=record.flight_date,
                    error=str(e),
                )
                result = HandlerResult(status="store_failed", reply=REPLY_SAVE_ERROR, record=record)
            else:
                is_new = existing is None
                log_event(
                    logger,
                    "record_stored",
                    flight_no=record.flight_no,
                    flight_date=record.flight_date,
                    is_new=is_new,
                )
                result = HandlerResult(
                    status="stored",
                    reply=compose_success_reply(outcome.summary, is_new),
                    record=record,
                    summary=outcome.summary,
                    is_new=is_new,
                )

        result.reply_sent = await self._reply(inbound.sender_id, result.reply)
        return result

    async def _reply(self, recipient_id: str, text: str) -> bool:
        try:
            await self.notifier.send(recipient_id, text)
        except NotificationError as e:
            # The parse and store outcome stands even if the reply is lost
            log_event(
                logger,
                "reply_failed",
                level=logging.ERROR,
                recipient=mask_recipient(recipient_id),
                error=str(e),
            )
            return False
        log_event(logger, "reply_sent", recipient=mask_recipient(recipient_id))
        return True


def build_default_handler() -> MovementMessageHandler:
    """Wire collaborators from the environment, degrading to local stand-ins."""
    has_supabase = bool(SUPABASE_URL and SUPABASE_ANON_KEY)
    has_twilio = bool(TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and TWILIO_WHATSAPP_NUMBER)

    store: FlightStore
    if has_supabase:
        store = SupabaseFlightStore(SUPABASE_URL, SUPABASE_ANON_KEY)  # type: ignore[arg-type]
    else:
        store = InMemoryFlightStore()

    notifier: Notifier
    if has_twilio:
        notifier = TwilioNotifier(
            TWILIO_ACCOUNT_SID,  # type: ignore[arg-type]
            TWILIO_AUTH_TOKEN,  # type: ignore[arg-type]
            TWILIO_WHATSAPP_NUMBER,  # type: ignore[arg-type]
        )
    else:
        notifier = LoggingNotifier()

    log_event(
        logger,
        "handler_initialized",
        supabase_enabled=has_supabase,
        twilio_enabled=has_twilio,
    )
    if not has_supabase:
        log_event(logger, "supabase_not_configured", level=logging.WARNING, fallback="memory")
    if not has_twilio:
        log_event(logger, "twilio_not_configured", level=logging.WARNING, fallback="log")

    return MovementMessageHandler(store, notifier)
