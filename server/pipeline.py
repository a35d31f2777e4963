# pipeline.py
import logging
from typing import Any, List, Optional

from assembler import assemble_record, field_summary
from derivation import derive_fields
from extraction_engine import MovementExtractionEngine
from logging_utils import log_event
from models import FlightRecord, ParseOutcome, StageEvent, UnparseableMessage
from normalizer import normalize_message
from record_validator import validate_fields

logger = logging.getLogger("mvtintel.pipeline")

STAGES = ("normalize", "extract", "derive", "validate", "assemble")


class MovementPipeline:
    """
    raw text -> lines -> extracted fields -> derived fields -> validated -> record.

    Holds no per-message state; one instance can serve concurrent callers.
    """

    def __init__(self, extractor: Optional[MovementExtractionEngine] = None) -> None:
        self.extractor = extractor or MovementExtractionEngine()

    def process(self, text: str) -> ParseOutcome:
        events: List[StageEvent] = []

        def emit(stage: str, outcome: str = "ok", **fields: Any) -> None:
            events.append(StageEvent(stage=stage, outcome=outcome, fields=fields))
            log_event(
                logger,
                "mvt_stage_finished",
                level=logging.INFO if outcome == "ok" else logging.WARNING,
                stage=stage,
                outcome=outcome,
                **fields,
            )

        try:
            lines = normalize_message(text)
            emit("normalize", line_count=len(lines))

            extracted = self.extractor.extract(lines)
            emit(
                "extract",
                flight_no=extracted.flight_no,
                matched_rules=dict(extracted.matched_rules),
            )

            derived = derive_fields(extracted)
            emit(
                "derive",
                route=derived.route,
                total_pax=derived.total_pax,
                remark=derived.remark,
                delay_minutes=derived.delay_minutes,
            )

            validate_fields(extracted)
            emit("validate", flight_date=extracted.flight_date)

            record = assemble_record(extracted, derived)
            summary = field_summary(record)
            emit("assemble", field_count=len(summary))
        except UnparseableMessage as e:
            emit(e.stage, outcome="rejected", reason=e.reason)
            return ParseOutcome(failed_stage=e.stage, reason=e.reason, events=events)

        return ParseOutcome(record=record, summary=summary, events=events)


_default_pipeline = MovementPipeline()


def parse_flight_message(text: str) -> Optional[FlightRecord]:
    """Parse one raw message; None when it cannot produce a record."""
    return _default_pipeline.process(text).record
