from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from logging_utils import log_event
from models import FlightRecord

logger = logging.getLogger("mvtintel.store")


class FlightStore:
    """
    Persistence collaborator keyed by (flight_no, flight_date).

    Subclasses implement lookup/upsert; the async context manager hooks let
    network-backed stores open and close their sessions.
    """

    async def __aenter__(self) -> "FlightStore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def lookup(self, flight_no: str, flight_date: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def upsert(self, record: FlightRecord) -> None:
        raise NotImplementedError


class InMemoryFlightStore(FlightStore):
    """Dict-backed store for local runs and tests."""

    def __init__(self) -> None:
        self.rows: Dict[Tuple[str, str], Dict[str, Any]] = {}

    async def lookup(self, flight_no: str, flight_date: str) -> Optional[Dict[str, Any]]:
        row = self.rows.get((flight_no, flight_date))
        return dict(row) if row is not None else None

    async def upsert(self, record: FlightRecord) -> None:
        key = record.natural_key
        existed = key in self.rows
        self.rows[key] = record.as_row()
        log_event(
            logger,
            "memory_store_upsert",
            flight_no=key[0],
            flight_date=key[1],
            updated=existed,
        )
