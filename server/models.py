# models.py
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


# Canonical FlightRecord field order and the labels used in the reply summary
FIELD_LABELS: Tuple[Tuple[str, str], ...] = (
    ("flight_no", "Flight"),
    ("flight_date", "Date"),
    ("aircraft", "Aircraft"),
    ("departure", "From"),
    ("arrival", "To"),
    ("route", "Route"),
    ("std", "STD"),
    ("atd", "ATD"),
    ("premium", "Premium"),
    ("economy", "Economy"),
    ("infant", "Infant"),
    ("total_pax", "Total PAX"),
    ("capacity", "Capacity"),
    ("remark", "Remark"),
    ("delay_reason", "Delay Reason"),
    ("schedule_status", "Schedule Status"),
)
FIELD_ORDER: Tuple[str, ...] = tuple(name for name, _ in FIELD_LABELS)

NATURAL_KEY: Tuple[str, str] = ("flight_no", "flight_date")


class UnparseableMessage(Exception):
    """Raised inside the engine when a message cannot yield a record."""

    def __init__(self, stage: str, reason: str) -> None:
        super().__init__(f"{stage}: {reason}")
        self.stage = stage
        self.reason = reason


class ExtractedFields(BaseModel):
    """Raw values read off the line sequence, before derivation."""

    flight_no: str = ""
    flight_date: Optional[str] = None
    date_token: Optional[str] = None
    aircraft: Optional[str] = None
    departure: Optional[str] = None
    arrival: Optional[str] = None
    route_text: Optional[str] = None
    std: Optional[str] = None
    atd: Optional[str] = None
    premium: Optional[int] = None
    economy: Optional[int] = None
    infant: Optional[int] = None
    total_pax: Optional[int] = None
    capacity: Optional[int] = None
    remark: Optional[str] = None
    delay_reason: Optional[str] = None
    schedule_status: Optional[str] = None
    matched_rules: Dict[str, str] = Field(default_factory=dict)


class DerivedFields(BaseModel):
    route: str = ""
    total_pax: Optional[int] = None
    remark: Optional[str] = None
    delay_minutes: Optional[int] = None


class FlightRecord(BaseModel):
    flight_no: str = Field(..., min_length=1)
    flight_date: str = Field(..., description="YYYY-MM-DD")
    aircraft: Optional[str] = None
    departure: Optional[str] = None
    arrival: Optional[str] = None
    route: str = ""
    std: Optional[str] = None
    atd: Optional[str] = None
    premium: Optional[int] = Field(default=None, ge=0)
    economy: Optional[int] = Field(default=None, ge=0)
    infant: Optional[int] = Field(default=None, ge=0)
    total_pax: Optional[int] = Field(default=None, ge=0)
    capacity: Optional[int] = Field(default=None, ge=0)
    remark: Optional[str] = None
    delay_reason: Optional[str] = None
    schedule_status: Optional[str] = None

    @field_validator("flight_date")
    @classmethod
    def _validate_date(cls, v: str) -> str:
        if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", v):
            raise ValueError("flight_date must be YYYY-MM-DD")
        return v

    @field_validator("departure", "arrival")
    @classmethod
    def _validate_airport(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not re.fullmatch(r"[A-Z]{3,4}", v):
            raise ValueError("airport code must be 3-4 uppercase letters")
        return v

    @property
    def natural_key(self) -> Tuple[str, str]:
        return tuple(getattr(self, name) for name in NATURAL_KEY)

    def as_row(self) -> Dict[str, Any]:
        """Column mapping in canonical order, as handed to the store."""
        data = self.model_dump()
        return {name: data[name] for name in FIELD_ORDER}


class StageEvent(BaseModel):
    stage: str
    outcome: str = "ok"
    fields: Dict[str, Any] = Field(default_factory=dict)


class ParseOutcome(BaseModel):
    record: Optional[FlightRecord] = None
    summary: List[str] = Field(default_factory=list)
    failed_stage: Optional[str] = None
    reason: Optional[str] = None
    events: List[StageEvent] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.record is not None


class ParseError(BaseModel):
    error: bool = True
    user_message: str
    technical_reason: str
    stage: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)
