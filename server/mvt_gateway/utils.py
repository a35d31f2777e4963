from __future__ import annotations

import re as _re
from typing import Any, Optional, Pattern

from .config import WHATSAPP_PREFIX

_DIGITS_RE: Pattern[str] = _re.compile(r"\d")


def is_whatsapp_sender(sender_id: Optional[str]) -> bool:
    return bool(sender_id) and sender_id.startswith(WHATSAPP_PREFIX)  # type: ignore[union-attr]


def mask_recipient(recipient_id: Optional[str]) -> str:
    """
    Hide all but the last four digits of a phone-style id for logs.
    whatsapp:+2348012345678 -> whatsapp:+*********5678
    """
    if not recipient_id:
        return ""
    total = len(_DIGITS_RE.findall(recipient_id))
    keep_from = max(total - 4, 0)
    seen = 0
    out = []
    for ch in recipient_id:
        if ch.isdigit():
            out.append(ch if seen >= keep_from else "*")
            seen += 1
        else:
            out.append(ch)
    return "".join(out)


def body_excerpt(body: Any, limit: int = 200) -> str:
    text = body if isinstance(body, str) else repr(body)
    return text[:limit]
