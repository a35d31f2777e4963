# record_validator.py
import re

from models import ExtractedFields, UnparseableMessage

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_fields(fields: ExtractedFields) -> None:
    """Reject anything without a usable natural key; every other field may be missing."""
    if not fields.flight_no.strip():
        raise UnparseableMessage("validate", "missing flight_no")
    if not fields.flight_date:
        raise UnparseableMessage("validate", f"bad date token {fields.date_token!r}")
    if not _ISO_DATE.match(fields.flight_date):
        raise UnparseableMessage("validate", f"malformed flight_date {fields.flight_date!r}")
