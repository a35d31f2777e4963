# extraction_engine.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Pattern, Sequence, Tuple

from models import ExtractedFields, UnparseableMessage
from patterns import patterns

FIRST = "first"
LAST = "last"

Reader = Callable[[Any], Dict[str, Any]]


@dataclass(frozen=True)
class LineRule:
    """
    One way of reading a field group off a single line.

    Rules for the same group are tried by descending precedence; within the
    winning precedence the first or last matching line is kept, per `pick`.
    A reader returning an empty dict counts as no match.
    """

    name: str
    pattern: Pattern[str]
    read: Reader
    precedence: int = 0
    pick: str = LAST


Hit = Tuple[int, LineRule, Dict[str, Any]]


def resolve_rules(
    lines: Sequence[str], rules: Sequence[LineRule]
) -> Tuple[Optional[LineRule], Dict[str, Any]]:
    """Apply a rule table to a line sequence and return the winning rule and its values."""
    for precedence in sorted({r.precedence for r in rules}, reverse=True):
        tier = [r for r in rules if r.precedence == precedence]
        hits: List[Hit] = []
        for rule in tier:
            for idx, line in enumerate(lines):
                m = rule.pattern.search(line)
                if not m:
                    continue
                values = rule.read(m)
                if values:
                    hits.append((idx, rule, values))
        if not hits:
            continue
        if tier[0].pick == FIRST:
            idx, rule, values = min(hits, key=lambda h: h[0])
        else:
            idx, rule, values = max(hits, key=lambda h: h[0])
        return rule, values
    return None, {}


# ─────────────────────────────────────────────────────────────────────────────
# READERS
# ─────────────────────────────────────────────────────────────────────────────


def expand_date_token(token: Optional[str]) -> Optional[str]:
    """YYMMDD -> 20YY-MM-DD; anything else (or an impossible date) -> None."""
    if not token:
        return None
    m = patterns.DATE_TOKEN.match(token)
    if not m:
        return None
    yy, mm, dd = (int(g) for g in m.groups())
    try:
        return date(2000 + yy, mm, dd).isoformat()
    except ValueError:
        return None


def _read_identity(m) -> Dict[str, Any]:
    tokens = m.string.split()
    date_token = tokens[1] if len(tokens) > 1 else None
    return {
        "flight_no": tokens[0],
        "date_token": date_token,
        "flight_date": expand_date_token(date_token),
        "aircraft": tokens[2] if len(tokens) > 2 else None,
    }


def _read_route(m) -> Dict[str, Any]:
    return {
        "departure": m.group("departure"),
        "arrival": m.group("arrival"),
        "route_text": m.group(0),
    }


def _time_reader(field: str) -> Reader:
    def read(m) -> Dict[str, Any]:
        hour, minute = m.group("hour"), m.group("minute")
        return {field: f"{hour}:{minute}" if minute else hour}

    return read


def _int_group(m, name: str) -> Optional[int]:
    raw = m.group(name)
    return int(raw) if raw is not None else None


def _read_pax_preferred(m) -> Dict[str, Any]:
    return {
        "total_pax": _int_group(m, "total"),
        "premium": _int_group(m, "premium"),
        "economy": _int_group(m, "economy"),
        "infant": _int_group(m, "infant"),
    }


def _read_pax_fallback(m) -> Dict[str, Any]:
    return {
        "premium": _int_group(m, "premium"),
        "economy": _int_group(m, "economy"),
    }


def _read_infant(m) -> Dict[str, Any]:
    return {"infant": int(m.group("infant"))}


def _text_reader(field: str) -> Reader:
    def read(m) -> Dict[str, Any]:
        text = m.group("text").strip()
        return {field: text} if text else {}

    return read


# ─────────────────────────────────────────────────────────────────────────────
# RULE TABLES
# ─────────────────────────────────────────────────────────────────────────────

IDENTITY_RULES: Tuple[LineRule, ...] = (
    LineRule("identity_line", patterns.IDENTITY_LINE, _read_identity, pick=FIRST),
)

ROUTE_RULES: Tuple[LineRule, ...] = (
    LineRule("route_line", patterns.ROUTE_LINE, _read_route, pick=FIRST),
)

STD_RULES: Tuple[LineRule, ...] = (
    LineRule("std_label", patterns.STD_TIME, _time_reader("std")),
)

ATD_RULES: Tuple[LineRule, ...] = (
    LineRule("atd_label", patterns.ATD_TIME, _time_reader("atd")),
)

# Applied to the PAX line only
PAX_COUNT_RULES: Tuple[LineRule, ...] = (
    LineRule("pax_preferred", patterns.PAX_PREFERRED, _read_pax_preferred, precedence=1),
    LineRule("pax_fallback", patterns.PAX_FALLBACK, _read_pax_fallback, precedence=0),
)

INFANT_RULES: Tuple[LineRule, ...] = (
    LineRule("infant_marker", patterns.INFANT_MARKER, _read_infant),
)

DELAY_REASON_RULES: Tuple[LineRule, ...] = (
    LineRule("delay_reason_label", patterns.DELAY_REASON_LINE, _text_reader("delay_reason"), precedence=1),
    LineRule("dly_label", patterns.DLY_LINE, _text_reader("delay_reason"), precedence=0, pick=FIRST),
)

REMARK_RULES: Tuple[LineRule, ...] = (
    LineRule("si_label", patterns.SI_LINE, _text_reader("remark")),
    LineRule("remark_label", patterns.REMARK_LINE, _text_reader("remark")),
)

SCHEDULE_STATUS_RULES: Tuple[LineRule, ...] = (
    LineRule("schedule_status_label", patterns.SCHEDULE_STATUS_LINE, _text_reader("schedule_status")),
)

# Groups that scan the whole line sequence, in report order
LINE_GROUPS: Tuple[Tuple[str, Tuple[LineRule, ...]], ...] = (
    ("route", ROUTE_RULES),
    ("std", STD_RULES),
    ("atd", ATD_RULES),
    ("delay_reason", DELAY_REASON_RULES),
    ("remark", REMARK_RULES),
    ("schedule_status", SCHEDULE_STATUS_RULES),
)


class MovementExtractionEngine:
    """Runs every field extractor over the same line sequence."""

    def extract(self, lines: Sequence[str]) -> ExtractedFields:
        rule, values = resolve_rules(lines, IDENTITY_RULES)
        if rule is None:
            raise UnparseableMessage("extract", "no identity line")

        matched: Dict[str, str] = {"identity": rule.name}
        data: Dict[str, Any] = dict(values)

        for group, rules in LINE_GROUPS:
            rule, values = resolve_rules(lines, rules)
            if rule is not None:
                matched[group] = rule.name
                data.update(values)

        data.update(self._extract_passengers(lines, matched))

        return ExtractedFields(**data, matched_rules=matched)

    @staticmethod
    def find_pax_line(lines: Sequence[str]) -> Optional[str]:
        for line in lines:
            if patterns.PAX_LABEL.search(line):
                return line
        return None

    def _extract_passengers(self, lines: Sequence[str], matched: Dict[str, str]) -> Dict[str, Any]:
        pax_line = self.find_pax_line(lines)
        if pax_line is None:
            return {}

        out: Dict[str, Any] = {}
        rule, values = resolve_rules([pax_line], PAX_COUNT_RULES)
        if rule is not None:
            matched["passengers"] = rule.name
            out.update({k: v for k, v in values.items() if v is not None})

        if "infant" not in out:
            rule, values = resolve_rules([pax_line], INFANT_RULES)
            if rule is not None:
                matched["infant"] = rule.name
                out.update(values)

        if out.get("economy") is not None:
            out["capacity"] = out["economy"]
        return out


def extract_fields(lines: Sequence[str]) -> ExtractedFields:
    return MovementExtractionEngine().extract(lines)
