from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from models import FlightRecord


class InboundMessage(BaseModel):
    text: str
    sender_id: str


class HandlerResult(BaseModel):
    status: str  # "stored" | "unparseable" | "store_failed"
    reply: str
    record: Optional[FlightRecord] = None
    summary: List[str] = Field(default_factory=list)
    is_new: Optional[bool] = None
    failed_stage: Optional[str] = None
    reply_sent: bool = False
