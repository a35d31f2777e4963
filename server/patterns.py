# patterns.py
import re

# Every pattern is anchored or bounded; none nests quantifiers.


class Patterns:
    # Normalizer markers
    CORRECTION_MARKER = re.compile(r"^\s*CORR\b\s*", re.IGNORECASE)
    MESSAGE_TYPE_MARKER = re.compile(r"^\s*MVT\b\s*", re.IGNORECASE)
    BLANK_LINE_RUN = re.compile(r"\n{2,}")

    # "IAN521 250527 5N-CEE"
    IDENTITY_LINE = re.compile(r"^[A-Z]{3}\d{3}\s+\d{6}")
    DATE_TOKEN = re.compile(r"^(\d{2})(\d{2})(\d{2})$")

    # "ABV-LOS"
    ROUTE_LINE = re.compile(r"^(?P<departure>[A-Z]{3,4})-(?P<arrival>[A-Z]{3,4})\b")

    # "STD:08:00", "C/O 0800", "ATD 08", "A/B:0815"
    STD_TIME = re.compile(
        r"(?<![A-Z0-9/])(?:C/O|STD)[:.\s]{0,3}"
        r"(?P<hour>[01]\d|2[0-3])(?::?(?P<minute>[0-5]\d))?(?!:?\d)",
        re.IGNORECASE,
    )
    ATD_TIME = re.compile(
        r"(?<![A-Z0-9/])(?:A/B|ATD)[:.\s]{0,3}"
        r"(?P<hour>[01]\d|2[0-3])(?::?(?P<minute>[0-5]\d))?(?!:?\d)",
        re.IGNORECASE,
    )
    CLOCK_TIME = re.compile(r"^(?P<hour>[01]\d|2[0-3]):(?P<minute>[0-5]\d)$")

    # "PAX:(130)09/120+01inf"
    PAX_LABEL = re.compile(r"\bPAX\s?[:.]", re.IGNORECASE)
    PAX_PREFERRED = re.compile(
        r"(?:\((?P<total>\d{1,3})\)\s{0,3})?(?<![\d/])"
        r"(?P<premium>\d{1,2})/(?P<economy>\d{2,3})(?!\d)"
        r"(?:\+(?P<infant>\d{1,2})\s?INF)?",
        re.IGNORECASE,
    )
    # "PAX: 12 / 150"
    PAX_FALLBACK = re.compile(
        r"\bPAX\s?[:.]?\s{0,3}(?P<premium>\d{1,3})\s{0,3}/\s{0,3}(?P<economy>\d{1,3})(?!\d)",
        re.IGNORECASE,
    )
    INFANT_MARKER = re.compile(r"\+\s?(?P<infant>\d{1,2})\s?INF", re.IGNORECASE)

    # Labelled free-text lines
    DLY_LINE = re.compile(r"^DLY[:.]\s*(?P<text>.*)$", re.IGNORECASE)
    DELAY_REASON_LINE = re.compile(r"^Delay Reason[:.]\s*(?P<text>.*)$", re.IGNORECASE)
    SI_LINE = re.compile(r"^SI:\s*(?P<text>.*)$", re.IGNORECASE)
    REMARK_LINE = re.compile(r"^Remark[:.]\s*(?P<text>.*)$", re.IGNORECASE)
    SCHEDULE_STATUS_LINE = re.compile(r"^Schedule Status[:.]\s*(?P<text>.*)$", re.IGNORECASE)


patterns = Patterns()
