# normalizer.py
from typing import List

from patterns import patterns


def normalize_message(text: str) -> List[str]:
    """
    Turn raw message text into the line sequence every extractor reads.

    Strips a leading CORR marker, then a leading MVT marker, drops carriage
    returns, folds blank-line runs, and returns the trimmed non-empty lines.
    Never raises; text with no content gives an empty list.
    """
    if not text:
        return []

    cleaned = patterns.CORRECTION_MARKER.sub("", text, count=1)
    cleaned = patterns.MESSAGE_TYPE_MARKER.sub("", cleaned, count=1)
    cleaned = cleaned.replace("\r", "")
    cleaned = patterns.BLANK_LINE_RUN.sub("\n", cleaned)
    cleaned = cleaned.strip()

    lines = (line.strip() for line in cleaned.split("\n"))
    return [line for line in lines if line]
