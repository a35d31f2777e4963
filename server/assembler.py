# assembler.py
from typing import Any, List

from pydantic import ValidationError

from config import SCHEDULE_STATUS_DEFAULT
from models import (
    FIELD_LABELS,
    DerivedFields,
    ExtractedFields,
    FlightRecord,
    UnparseableMessage,
)


def assemble_record(fields: ExtractedFields, derived: DerivedFields) -> FlightRecord:
    try:
        return FlightRecord(
            flight_no=fields.flight_no,
            flight_date=fields.flight_date,
            aircraft=fields.aircraft,
            departure=fields.departure,
            arrival=fields.arrival,
            route=derived.route,
            std=fields.std,
            atd=fields.atd,
            premium=fields.premium,
            economy=fields.economy,
            infant=fields.infant,
            total_pax=derived.total_pax,
            capacity=fields.capacity,
            remark=derived.remark,
            delay_reason=fields.delay_reason,
            schedule_status=fields.schedule_status or SCHEDULE_STATUS_DEFAULT,
        )
    except ValidationError as e:
        raise UnparseableMessage("assemble", f"record rejected: {e.error_count()} error(s)") from e


def _present(value: Any) -> bool:
    return value is not None and value != ""


def field_summary(record: FlightRecord) -> List[str]:
    """'Label: value' lines for every filled field, in canonical field order."""
    data = record.model_dump()
    return [
        f"{label}: {data[name]}"
        for name, label in FIELD_LABELS
        if _present(data[name])
    ]
