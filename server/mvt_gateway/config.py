from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# Record store (Supabase / PostgREST)
SUPABASE_URL: str | None = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY: str | None = os.getenv("SUPABASE_ANON_KEY")
SUPABASE_TABLE: str = os.getenv("SUPABASE_TABLE", "flights")

# Reply channel (Twilio WhatsApp)
TWILIO_API_BASE = os.getenv("TWILIO_API_BASE", "https://api.twilio.com")
TWILIO_ACCOUNT_SID: str | None = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN: str | None = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_WHATSAPP_NUMBER: str | None = os.getenv("TWILIO_WHATSAPP_NUMBER")

WHATSAPP_PREFIX = "whatsapp:"
REQUIRE_WHATSAPP_SENDER: bool = _env_bool("REQUIRE_WHATSAPP_SENDER", True)

# HTTP client knobs
HTTP_TIMEOUT_S: float = float(os.getenv("HTTP_TIMEOUT_S", "12"))
HTTP_CONNECT_TIMEOUT_S: float = float(os.getenv("HTTP_CONNECT_TIMEOUT_S", "3"))
HTTP_RETRY_ATTEMPTS: int = int(os.getenv("HTTP_RETRY_ATTEMPTS", "3"))
HTTP_RETRY_MIN_WAIT_S: float = float(os.getenv("HTTP_RETRY_MIN_WAIT_S", "0.5"))
HTTP_RETRY_MAX_WAIT_S: float = float(os.getenv("HTTP_RETRY_MAX_WAIT_S", "4"))
