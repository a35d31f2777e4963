from pathlib import Path
import sys

SERVER_DIR = Path(__file__).resolve().parents[1] / "server"
if str(SERVER_DIR) not in sys.path:
    sys.path.insert(0, str(SERVER_DIR))

import logging
import re

import pytest

from config import REMARK_DELAYED, REMARK_ON_TIME, SCHEDULE_STATUS_DEFAULT
from pipeline import STAGES, MovementPipeline, parse_flight_message

EXAMPLE = "IAN521 250527 5N-CEE\nABV-LOS\nSTD:08:00\nATD:08:10\nPAX:(77)07/70"

MESSAGES = [
    EXAMPLE,
    EXAMPLE.replace("ATD:08:10", "ATD:08:30"),
    "MVT\nIAN521 250527 5N-CEE\nABV-LOS\nPAX:(130)09/120+01inf",
    "CORR\nIAN521 250527\nPAX: 12 / 150 +02 INF\nDLY: REACTIONARY",
    "IAN521 250527\nPAX:(100)09/120+01inf\nSI: LATE CATERING",
    "IAN521 2505271\nABV-LOS",
    "ABV-LOS\nSTD:08:00",
    "",
]


def test_example_on_time_movement() -> None:
    record = parse_flight_message(EXAMPLE)

    assert record is not None
    assert record.flight_no == "IAN521"
    assert record.flight_date == "2025-05-27"
    assert record.aircraft == "5N-CEE"
    assert record.route == "ABV-LOS"
    assert (record.departure, record.arrival) == ("ABV", "LOS")
    assert record.std == "08:00"
    assert record.atd == "08:10"
    assert record.remark == REMARK_ON_TIME
    assert (record.total_pax, record.premium, record.economy, record.capacity) == (77, 7, 70, 70)
    assert record.infant is None
    assert record.schedule_status == SCHEDULE_STATUS_DEFAULT


def test_example_delayed_movement() -> None:
    record = parse_flight_message(EXAMPLE.replace("ATD:08:10", "ATD:08:30"))

    assert record.remark == REMARK_DELAYED


def test_example_pax_with_infant() -> None:
    record = parse_flight_message("IAN521 250527\nPAX:(130)09/120+01inf")

    assert (record.total_pax, record.premium, record.economy, record.infant) == (130, 9, 120, 1)


def test_missing_identity_line_gives_no_record() -> None:
    outcome = MovementPipeline().process("ABV-LOS\nSTD:08:00\nATD:08:10")

    assert outcome.record is None
    assert not outcome.ok
    assert outcome.failed_stage == "extract"
    assert outcome.summary == []


def test_bad_date_token_rejected_at_validation() -> None:
    outcome = MovementPipeline().process("IAN521 2505271 5N-CEE\nABV-LOS")

    assert outcome.record is None
    assert outcome.failed_stage == "validate"


def test_empty_text_rejected_at_extraction() -> None:
    outcome = MovementPipeline().process("")

    assert outcome.failed_stage == "extract"
    assert outcome.events[0].stage == "normalize"
    assert outcome.events[0].fields["line_count"] == 0


def test_correction_message_restates_times() -> None:
    text = "CORR\nMVT\nIAN521 250527 5N-CEE\nSTD:08:00\nATD:08:40\nATD:08:12"

    record = parse_flight_message(text)

    assert record.atd == "08:12"
    assert record.remark == REMARK_ON_TIME


def test_timing_remark_overrides_literal_remark() -> None:
    record = parse_flight_message(
        "IAN521 250527\nSTD 0800\nATD 0845\nRemark: BIRD STRIKE CHECK"
    )

    assert record.remark == REMARK_DELAYED


def test_literal_remark_kept_when_hour_only_time() -> None:
    record = parse_flight_message("IAN521 250527\nSTD:08\nATD:08:45\nSI: BIRD STRIKE CHECK")

    assert record.std == "08"
    assert record.remark == "BIRD STRIKE CHECK"


def test_partial_record_is_still_produced() -> None:
    record = parse_flight_message("IAN521 250527")

    assert record is not None
    assert record.route == ""
    assert record.departure is None
    assert record.total_pax is None
    assert record.remark is None


def test_summary_reports_filled_fields() -> None:
    outcome = MovementPipeline().process(EXAMPLE)

    assert outcome.summary[:3] == ["Flight: IAN521", "Date: 2025-05-27", "Aircraft: 5N-CEE"]
    assert "Route: ABV-LOS" in outcome.summary
    assert "Total PAX: 77" in outcome.summary
    assert not any(line.startswith("Infant") for line in outcome.summary)


def test_every_stage_reports_on_success() -> None:
    outcome = MovementPipeline().process(EXAMPLE)

    assert [e.stage for e in outcome.events] == list(STAGES)
    assert all(e.outcome == "ok" for e in outcome.events)
    extract = outcome.events[1]
    assert extract.fields["matched_rules"]["passengers"] == "pax_preferred"


def test_rejecting_stage_is_last_event() -> None:
    outcome = MovementPipeline().process("IAN521 2505271")

    last = outcome.events[-1]
    assert last.stage == "validate"
    assert last.outcome == "rejected"
    assert [e.stage for e in outcome.events[:-1]] == ["normalize", "extract", "derive"]


def test_stage_events_are_logged(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="mvtintel.pipeline"):
        MovementPipeline().process("ABV-LOS")

    stage_records = [r for r in caplog.records if getattr(r, "event", None) == "mvt_stage_finished"]
    assert [r.stage for r in stage_records] == ["normalize", "extract"]
    assert stage_records[-1].outcome == "rejected"
    assert stage_records[-1].levelno == logging.WARNING


@pytest.mark.parametrize("text", MESSAGES)
def test_parsing_is_idempotent(text: str) -> None:
    pipeline = MovementPipeline()

    first = pipeline.process(text)
    second = pipeline.process(text)

    assert first.model_dump_json() == second.model_dump_json()


@pytest.mark.parametrize("text", MESSAGES)
def test_record_invariants(text: str) -> None:
    record = parse_flight_message(text)
    if record is None:
        return

    assert record.flight_no
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", record.flight_date)
    known = [record.premium, record.economy, record.infant]
    if all(v is not None for v in known):
        assert record.total_pax >= sum(known)
    if record.departure and record.arrival:
        assert record.route == f"{record.departure}-{record.arrival}"
    if record.economy is not None:
        assert record.capacity == record.economy


def test_total_recomputed_when_components_exceed_it() -> None:
    record = parse_flight_message("IAN521 250527\nPAX:(100)09/120+01inf")

    assert record.total_pax == 130
