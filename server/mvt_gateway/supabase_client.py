from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Tuple

import aiohttp
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from logging_utils import log_event
from models import NATURAL_KEY, FlightRecord

from .config import (
    HTTP_CONNECT_TIMEOUT_S,
    HTTP_RETRY_ATTEMPTS,
    HTTP_RETRY_MAX_WAIT_S,
    HTTP_RETRY_MIN_WAIT_S,
    HTTP_TIMEOUT_S,
    SUPABASE_TABLE,
)
from .errors import StoreError, TransientHTTPError
from .store import FlightStore
from .utils import body_excerpt

logger = logging.getLogger("mvtintel.supabase")


class SupabaseFlightStore(FlightStore):
    """
    Flight record store on Supabase's PostgREST API.

    Endpoints used:
      - GET  /rest/v1/{table}?flight_no=eq.{no}&flight_date=eq.{date}&limit=1
      - POST /rest/v1/{table}?on_conflict=flight_no,flight_date  (merge-duplicates)
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        table: str = SUPABASE_TABLE,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._endpoint = f"{url.rstrip('/')}/rest/v1/{table}"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "SupabaseFlightStore":
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=HTTP_TIMEOUT_S, connect=HTTP_CONNECT_TIMEOUT_S)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    @retry(
        stop=stop_after_attempt(HTTP_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=HTTP_RETRY_MIN_WAIT_S, min=HTTP_RETRY_MIN_WAIT_S, max=HTTP_RETRY_MAX_WAIT_S),
        retry=retry_if_exception_type(TransientHTTPError),
        reraise=True,
    )
    async def _request(
        self,
        method: str,
        params: Dict[str, str],
        payload: Any = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, Any]:
        if self._session is None:
            raise StoreError("Supabase store used outside its async context")

        headers = dict(self._headers)
        if extra_headers:
            headers.update(extra_headers)

        t0 = time.perf_counter()
        try:
            async with self._session.request(
                method, self._endpoint, params=params, json=payload, headers=headers
            ) as r:
                status = r.status
                try:
                    body = await r.json(content_type=None)
                except ValueError:
                    body = await r.text()
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            raise TransientHTTPError(f"Supabase {method} failed: {e}") from e
        except (aiohttp.ClientError, UnicodeDecodeError) as e:
            # Bad URL, truncated or undecodable body: not worth retrying
            raise StoreError(f"Supabase {method} failed: {e}") from e

        log_event(
            logger,
            "supabase_request",
            method=method,
            status=status,
            duration_ms=int((time.perf_counter() - t0) * 1000),
        )

        if status == 429 or status >= 500:
            raise TransientHTTPError(f"Supabase {method} returned {status}", status=status)
        return status, body

    async def lookup(self, flight_no: str, flight_date: str) -> Optional[Dict[str, Any]]:
        params = {
            "select": "flight_no,flight_date",
            "flight_no": f"eq.{flight_no}",
            "flight_date": f"eq.{flight_date}",
            "limit": "1",
        }
        try:
            status, body = await self._request("GET", params)
        except TransientHTTPError as e:
            raise StoreError(str(e)) from e

        if status != 200:
            log_event(
                logger,
                "supabase_lookup_failed",
                level=logging.ERROR,
                status=status,
                body=body_excerpt(body),
            )
            raise StoreError(f"lookup returned {status}")
        if isinstance(body, list) and body:
            return body[0]
        return None

    async def upsert(self, record: FlightRecord) -> None:
        params = {"on_conflict": ",".join(NATURAL_KEY)}
        headers = {"Prefer": "resolution=merge-duplicates,return=minimal"}
        try:
            status, body = await self._request("POST", params, [record.as_row()], headers)
        except TransientHTTPError as e:
            raise StoreError(str(e)) from e

        if status not in (200, 201, 204):
            log_event(
                logger,
                "supabase_upsert_failed",
                level=logging.ERROR,
                status=status,
                body=body_excerpt(body),
                flight_no=record.flight_no,
                flight_date=record.flight_date,
            )
            raise StoreError(f"upsert returned {status}")
