# derivation.py
"""
Fields computed from other fields rather than read off the message.

- route is always "{departure}-{arrival}" once both codes are known
- total_pax is never below the sum of the known passenger components
- remark becomes an on-time / delayed status when STD and ATD are both clock times
"""

from typing import Optional

from config import DELAY_THRESHOLD_MINUTES, REMARK_DELAYED, REMARK_ON_TIME
from models import DerivedFields, ExtractedFields
from patterns import patterns


def clock_minutes(value: Optional[str]) -> Optional[int]:
    """Minutes since midnight for an HH:MM string, None for anything else."""
    if not value:
        return None
    m = patterns.CLOCK_TIME.match(value)
    if not m:
        return None
    return int(m.group("hour")) * 60 + int(m.group("minute"))


def derive_route(departure: Optional[str], arrival: Optional[str]) -> str:
    if departure and arrival:
        return f"{departure}-{arrival}"
    return ""


def reconcile_total_pax(
    total: Optional[int],
    premium: Optional[int],
    economy: Optional[int],
    infant: Optional[int],
) -> Optional[int]:
    components = [v for v in (premium, economy, infant) if v is not None]
    if not components:
        return total
    component_sum = sum(components)
    if total is None:
        return component_sum
    return max(total, component_sum)


def delay_minutes(std: Optional[str], atd: Optional[str]) -> Optional[int]:
    std_min = clock_minutes(std)
    atd_min = clock_minutes(atd)
    if std_min is None or atd_min is None:
        return None
    return atd_min - std_min


def derive_remark(
    std: Optional[str],
    atd: Optional[str],
    literal: Optional[str],
    threshold: int = DELAY_THRESHOLD_MINUTES,
) -> Optional[str]:
    gap = delay_minutes(std, atd)
    if gap is None:
        return literal
    return REMARK_DELAYED if gap > threshold else REMARK_ON_TIME


def derive_fields(fields: ExtractedFields) -> DerivedFields:
    return DerivedFields(
        route=derive_route(fields.departure, fields.arrival),
        total_pax=reconcile_total_pax(
            fields.total_pax, fields.premium, fields.economy, fields.infant
        ),
        remark=derive_remark(fields.std, fields.atd, fields.remark),
        delay_minutes=delay_minutes(fields.std, fields.atd),
    )
