from pathlib import Path
import sys

SERVER_DIR = Path(__file__).resolve().parents[1] / "server"
if str(SERVER_DIR) not in sys.path:
    sys.path.insert(0, str(SERVER_DIR))

import asyncio

import pytest

from config import REPLY_NEW_RECORD, REPLY_PARSE_ERROR, REPLY_SAVE_ERROR, REPLY_STORED, REPLY_UPDATED_RECORD
from mvt_gateway import (
    FlightStore,
    InMemoryFlightStore,
    InvalidInboundMessage,
    LoggingNotifier,
    MovementMessageHandler,
    Notifier,
    NotificationError,
    StoreError,
)

SENDER = "whatsapp:+2348012345678"
MESSAGE = "IAN521 250527 5N-CEE\nABV-LOS\nSTD:08:00\nATD:08:10\nPAX:(77)07/70"


class FailingStore(FlightStore):
    def __init__(self) -> None:
        self.upserts = 0

    async def lookup(self, flight_no, flight_date):
        return None

    async def upsert(self, record):
        self.upserts += 1
        raise StoreError("connection refused")


class FailingNotifier(Notifier):
    async def send(self, recipient_id, text):
        raise NotificationError("twilio down")


class TrackingStore(InMemoryFlightStore):
    def __init__(self) -> None:
        super().__init__()
        self.calls = []

    async def lookup(self, flight_no, flight_date):
        self.calls.append(("lookup", flight_no, flight_date))
        return await super().lookup(flight_no, flight_date)

    async def upsert(self, record):
        self.calls.append(("upsert", record.flight_no, record.flight_date))
        await super().upsert(record)


def _run(handler: MovementMessageHandler, text, sender=SENDER):
    async def go():
        async with handler:
            return await handler.handle(text, sender)

    return asyncio.run(go())


def test_new_record_stored_and_summary_replied() -> None:
    store, notifier = InMemoryFlightStore(), LoggingNotifier()

    result = _run(MovementMessageHandler(store, notifier), MESSAGE)

    assert result.status == "stored"
    assert result.is_new is True
    assert result.reply_sent is True
    assert ("IAN521", "2025-05-27") in store.rows
    assert store.rows[("IAN521", "2025-05-27")]["route"] == "ABV-LOS"
    recipient, reply = notifier.sent[0]
    assert recipient == SENDER
    lines = reply.split("\n")
    assert lines[0] == REPLY_STORED
    assert lines[1] == REPLY_NEW_RECORD
    assert "Route: ABV-LOS" in lines


def test_second_message_for_same_key_is_an_update() -> None:
    store, notifier = InMemoryFlightStore(), LoggingNotifier()
    handler = MovementMessageHandler(store, notifier)

    async def go():
        async with handler:
            first = await handler.handle(MESSAGE, SENDER)
            second = await handler.handle(MESSAGE.replace("ATD:08:10", "ATD:08:40"), SENDER)
            return first, second

    first, second = asyncio.run(go())

    assert first.is_new is True
    assert second.is_new is False
    assert second.reply.split("\n")[1] == REPLY_UPDATED_RECORD
    assert len(store.rows) == 1
    assert store.rows[("IAN521", "2025-05-27")]["remark"] == "delayed"


def test_lookup_happens_before_upsert() -> None:
    store = TrackingStore()

    _run(MovementMessageHandler(store, LoggingNotifier()), MESSAGE)

    assert [c[0] for c in store.calls] == ["lookup", "upsert"]


def test_unparseable_message_is_not_persisted() -> None:
    store, notifier = TrackingStore(), LoggingNotifier()

    result = _run(MovementMessageHandler(store, notifier), "hello there\nABV-LOS")

    assert result.status == "unparseable"
    assert result.failed_stage == "extract"
    assert result.reply == REPLY_PARSE_ERROR
    assert store.calls == []
    assert notifier.sent == [(SENDER, REPLY_PARSE_ERROR)]


def test_store_failure_replies_with_save_error() -> None:
    store, notifier = FailingStore(), LoggingNotifier()

    result = _run(MovementMessageHandler(store, notifier), MESSAGE)

    assert result.status == "store_failed"
    assert result.record.flight_no == "IAN521"
    assert store.upserts == 1
    assert notifier.sent == [(SENDER, REPLY_SAVE_ERROR)]


def test_reply_failure_does_not_undo_the_store() -> None:
    store = InMemoryFlightStore()

    result = _run(MovementMessageHandler(store, FailingNotifier()), MESSAGE)

    assert result.status == "stored"
    assert result.reply_sent is False
    assert len(store.rows) == 1


@pytest.mark.parametrize(
    "text, sender",
    [
        ("", SENDER),
        ("   ", SENDER),
        (None, SENDER),
        (MESSAGE, None),
        (MESSAGE, ""),
        (MESSAGE, "+2348012345678"),
    ],
)
def test_invalid_inbound_raises_before_parsing(text, sender) -> None:
    store, notifier = TrackingStore(), LoggingNotifier()

    with pytest.raises(InvalidInboundMessage):
        _run(MovementMessageHandler(store, notifier), text, sender)

    assert store.calls == []
    assert notifier.sent == []


def test_non_whatsapp_sender_allowed_when_not_required() -> None:
    handler = MovementMessageHandler(InMemoryFlightStore(), LoggingNotifier(), require_whatsapp=False)

    result = _run(handler, MESSAGE, "sms:+15550001111")

    assert result.status == "stored"
