from __future__ import annotations

from datetime import date, datetime

import numpy as np
import pandas as pd
import pytest

from engine.bucketing import Granularity, bucket_counts
from engine.data import records_frame
from engine.records import Accepted, Record, Rejected, coerce_date, normalize_key, normalize_row, normalize_rows


def test_normalize_key_ignores_case_spaces_and_underscores():
    assert normalize_key("Appt_Source") == "apptsource"
    assert normalize_key(" Appointment Date ") == "appointmentdate"
    assert normalize_key("LOCATION_name") == "locationname"


@pytest.mark.parametrize(
    "value",
    [
        date(2024, 1, 1),
        datetime(2024, 1, 1, 15, 30),
        pd.Timestamp("2024-01-01 08:00"),
        np.datetime64("2024-01-01"),
        45292,
        45292.75,
        np.int64(45292),
        "2024-01-01",
        "January 1, 2024",
        "1/1/2024",
    ],
)
def test_coerce_date_accepts_native_serial_and_text(value):
    assert coerce_date(value) == "2024-01-01"


@pytest.mark.parametrize("value", [None, "", "   ", "xyz", float("nan"), float("inf"), pd.NaT, True, 0, 0.0, 10**400])
def test_coerce_date_rejects_unusable_values(value):
    assert coerce_date(value) is None


def test_aliases_are_matched_and_fields_trimmed():
    outcome = normalize_row({"Appointment Date": "2024-03-01", "Location Name": " Downtown ", "Appt_Source": " Web "})
    assert isinstance(outcome, Accepted)
    assert outcome.record == Record(date="2024-03-01", location="Downtown", source="Web", service=None)


def test_city_and_appt_date_aliases():
    outcome = normalize_row({"APPT DATE": 45292, "City": "Austin", "source": "Phone", "Service": "Botox"})
    assert outcome.record == Record(date="2024-01-01", location="Austin", source="Phone", service="Botox")


def test_blank_location_and_source_default_to_unknown():
    outcome = normalize_row({"date": "2024-03-01", "location": "   ", "source": ""})
    assert outcome.record.location == "Unknown"
    assert outcome.record.source == "Unknown"


def test_missing_columns_default_but_service_stays_absent():
    outcome = normalize_row({"date": "2024-03-01"})
    assert outcome.record == Record(date="2024-03-01", location="Unknown", source="Unknown", service=None)
    assert "service" not in outcome.record.to_dict()


def test_numeric_cells_become_text():
    outcome = normalize_row({"date": "2024-03-01", "location": 101.0, "source": 7})
    assert outcome.record.location == "101"
    assert outcome.record.source == "7"


def test_rejections_carry_reason():
    missing = normalize_row({"location": "A"}, row_number=4)
    bad = normalize_row({"date": "xyz", "location": "A"}, row_number=5)
    assert missing == Rejected(4, "missing date")
    assert bad == Rejected(5, "unparseable date")
    assert not missing.accepted and not bad.accepted


def test_rejected_row_does_not_affect_neighbours():
    rows = [
        {"date": "2024-01-05", "source": "Web", "location": "A"},
        {"date": "xyz", "source": "Phone", "location": "B"},
        {"date": 45300, "source": "Web", "location": "C"},
    ]
    accepted, rejected = normalize_rows(rows)
    assert [r.location for r in accepted] == ["A", "C"]
    assert [(r.row_number, r.reason) for r in rejected] == [(2, "unparseable date")]


def test_normalizing_a_canonical_record_is_idempotent():
    record = Record(date="2024-02-29", location="B", source="Phone", service="Filler")
    assert normalize_row(record.to_dict()).record == record
    once = normalize_row({"Appt Date": "Feb 29 2024", "City": "B", "Appt_Source": "Phone", "service": "Filler"}).record
    assert normalize_row(once.to_dict()).record == once == record


def test_oversized_serial_is_rejected_without_aborting_the_batch():
    rows = [
        {"date": 10**400, "source": "Web", "location": "A"},
        {"date": "2024-01-05", "source": "Phone", "location": "B"},
    ]
    accepted, rejected = normalize_rows(rows)
    assert [r.location for r in accepted] == ["B"]
    assert [(r.row_number, r.reason) for r in rejected] == [(1, "unparseable date")]


def test_far_future_native_date_agrees_with_reload_and_bucketing():
    outcome = normalize_row({"date": datetime(3024, 5, 1), "location": "A"}, row_number=1)
    if outcome.accepted:
        stored = outcome.record.date
        assert coerce_date(stored) == stored
        assert sum(b.count for b in bucket_counts(records_frame([outcome.record]), Granularity.YEAR)) == 1
    else:
        assert outcome == Rejected(1, "unparseable date")
