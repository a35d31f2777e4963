from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from config import APP_VERSION, REPLY_PARSE_ERROR
from logging_utils import configure_logging, log_event, new_request_id
from models import FlightRecord, ParseError, StageEvent
from mvt_gateway import InvalidInboundMessage, MovementMessageHandler, build_default_handler

# ------------------------------------------------------------------------------
# APP + LOGGING SETUP
# ------------------------------------------------------------------------------

configure_logging()
logger = logging.getLogger("mvtintel.api")


class ParseRequest(BaseModel):
    text: str


class ParseResponse(BaseModel):
    record: FlightRecord
    summary: List[str]
    events: List[StageEvent]


def create_app(handler: Optional[MovementMessageHandler] = None) -> FastAPI:
    """
    Build the HTTP surface around a message handler.

    Tests pass a handler wired with fakes; production wiring comes from
    build_default_handler().
    """
    handler = handler or build_default_handler()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with handler:
            log_event(logger, "server_started", version=APP_VERSION)
            yield
        log_event(logger, "server_stopped")

    app = FastAPI(title="MVT-Intel", version=APP_VERSION, lifespan=lifespan)
    app.state.handler = handler

    # --------------------------------------------------------------------------
    # REQUEST LOGGING MIDDLEWARE
    # --------------------------------------------------------------------------

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        rid = new_request_id()
        start = time.time()

        log_event(
            logger,
            "http_request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
            request_id=rid,
        )

        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = int((time.time() - start) * 1000)
            log_event(
                logger,
                "http_request_finished",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=duration_ms,
                request_id=rid,
            )

    # --------------------------------------------------------------------------
    # ROUTES
    # --------------------------------------------------------------------------

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {
            "status": "ok",
            "version": app.version,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }

    @app.post("/webhook")
    async def webhook(request: Request):
        """Twilio inbound webhook (application/x-www-form-urlencoded)."""
        form = await request.form()
        text = form.get("Body")
        sender = form.get("From")

        try:
            result = await app.state.handler.handle(
                text if isinstance(text, str) else None,
                sender if isinstance(sender, str) else None,
            )
        except InvalidInboundMessage:
            return PlainTextResponse("Bad request", status_code=400)

        log_event(
            logger,
            "webhook_handled",
            status=result.status,
            reply_sent=result.reply_sent,
            failed_stage=result.failed_stage,
        )
        # Twilio retries non-2xx responses, so the sender's outcome travels in the reply
        return PlainTextResponse("OK")

    @app.post("/parse", response_model=ParseResponse)
    async def parse(body: ParseRequest):
        """Dry run: parse a message and return the record without storing it."""
        outcome = app.state.handler.pipeline.process(body.text)
        if outcome.record is None:
            err = ParseError(
                user_message=REPLY_PARSE_ERROR,
                technical_reason=outcome.reason or "unparseable",
                stage=outcome.failed_stage,
                suggestions=[
                    "First line must read like 'IAN521 250527 5N-CEE'",
                    "Date token is YYMMDD",
                ],
            )
            return JSONResponse(status_code=422, content=err.model_dump())

        return ParseResponse(record=outcome.record, summary=outcome.summary, events=outcome.events)

    return app
