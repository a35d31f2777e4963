from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional, Tuple

import aiohttp
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from logging_utils import log_event

from .config import (
    HTTP_CONNECT_TIMEOUT_S,
    HTTP_RETRY_ATTEMPTS,
    HTTP_RETRY_MAX_WAIT_S,
    HTTP_RETRY_MIN_WAIT_S,
    HTTP_TIMEOUT_S,
    TWILIO_API_BASE,
)
from .errors import NotificationError, TransientHTTPError
from .notifier import Notifier
from .utils import body_excerpt, mask_recipient

logger = logging.getLogger("mvtintel.twilio")


class TwilioNotifier(Notifier):
    """
    Sends WhatsApp replies through the Twilio Messages API:
      - POST /2010-04-01/Accounts/{sid}/Messages.json  (form: From, To, Body)
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        api_base: str = TWILIO_API_BASE,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._url = f"{api_base.rstrip('/')}/2010-04-01/Accounts/{account_sid}/Messages.json"
        self._auth = aiohttp.BasicAuth(account_sid, auth_token)
        self._from = from_number
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "TwilioNotifier":
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=HTTP_TIMEOUT_S, connect=HTTP_CONNECT_TIMEOUT_S)
            self._session = aiohttp.ClientSession(
                headers={"Accept": "application/json"}, timeout=timeout
            )
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
    async def _post(self, form: dict) -> Tuple[int, Any]:
        if self._session is None:
            raise NotificationError("Twilio notifier used outside its async context")

        t0 = time.perf_counter()
        try:
            async with self._session.request("POST", self._url, data=form, auth=self._auth) as r:
                status = r.status
                try:
                    body = await r.json(content_type=None)
                except ValueError:
                    body = await r.text()
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            raise TransientHTTPError(f"Twilio send failed: {e}") from e
        except (aiohttp.ClientError, UnicodeDecodeError) as e:
            raise NotificationError(f"Twilio send failed: {e}") from e

        log_event(
            logger,
            "twilio_request",
            status=status,
            duration_ms=int((time.perf_counter() - t0) * 1000),
        )

        if status == 429 or status >= 500:
            raise TransientHTTPError(f"Twilio returned {status}", status=status)
        return status, body

    async def send(self, recipient_id: str, text: str) -> Optional[str]:
        form = {"From": self._from, "To": recipient_id, "Body": text}
        try:
            status, body = await self._post(form)
        except TransientHTTPError as e:
            raise NotificationError(str(e)) from e

        if status not in (200, 201):
            log_event(
                logger,
                "twilio_send_failed",
                level=logging.ERROR,
                status=status,
                recipient=mask_recipient(recipient_id),
                body=body_excerpt(body),
            )
            raise NotificationError(f"Twilio returned {status}")

        return body.get("sid") if isinstance(body, dict) else None
