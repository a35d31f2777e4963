# config.py
import os
from dotenv import load_dotenv
load_dotenv()

import logging

logger = logging.getLogger("mvtintel.config")

APP_VERSION = "1.2.0"

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8001"))

# Remark derivation: ATD later than STD by more than this is a delay
DELAY_THRESHOLD_MINUTES = int(os.getenv("DELAY_THRESHOLD_MINUTES", "15"))

REMARK_ON_TIME = "on time"
REMARK_DELAYED = "delayed"
SCHEDULE_STATUS_DEFAULT = os.getenv("SCHEDULE_STATUS_DEFAULT", "on schedule")

# Replies sent back to the message sender
REPLY_PARSE_ERROR = "❌ Error: Could not parse flight message. Check your format."
REPLY_SAVE_ERROR = "❌ Error: Could not save flight record."
REPLY_STORED = "✅ MVT message received and stored!"
REPLY_NEW_RECORD = "New record"
REPLY_UPDATED_RECORD = "Updated record"
