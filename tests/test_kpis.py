from __future__ import annotations

import pytest

from engine.data import records_frame
from engine.kpis import (
    PLACEHOLDER,
    best_by_group,
    bottom_by,
    group_count_by,
    ranked_pairs,
    share_by,
    summarize,
    top_by,
)
from tests.record_factories import make_records


def test_end_to_end_summary(sample_frame):
    summary = summarize(sample_frame)
    assert summary.total == 3
    assert summary.top["source"] == "Web"
    assert summary.top["location"] == "A"
    assert summary.bottom["source"] == "Phone"
    assert summary.top["service"] == PLACEHOLDER


def test_group_count_by_keeps_first_encountered_order():
    df = records_frame(make_records(("2024-01-01", "Web", "A"), ("2024-01-02", "Phone", "A"), ("2024-01-03", "Web", "B")))
    assert group_count_by(df, "source") == [("Web", 2), ("Phone", 1)]
    assert group_count_by(df, lambda d: d["date"].str[:7]) == [("2024-01", 3)]


def test_ties_go_to_the_first_encountered_group():
    df = records_frame(
        make_records(
            ("2024-01-01", "Phone", "A"),
            ("2024-01-02", "Web", "A"),
            ("2024-01-03", "Email", "A"),
            ("2024-01-04", "Web", "A"),
            ("2024-01-05", "Phone", "A"),
        )
    )
    assert top_by(df, "source") == "Phone"
    assert bottom_by(df, "source") == "Email"


def test_empty_input_yields_placeholders():
    summary = summarize(records_frame([]))
    assert summary.total == 0
    assert set(summary.top.values()) == {PLACEHOLDER}
    assert set(summary.bottom.values()) == {PLACEHOLDER}
    assert ranked_pairs(records_frame([])) == []


def test_unknown_dimension_raises(sample_frame):
    with pytest.raises(ValueError):
        top_by(sample_frame, "date")


def test_service_views_skip_records_without_service(service_frame):
    assert top_by(service_frame, "service") == "Botox"
    assert share_by(service_frame, "service") == [{"name": "Botox", "value": 2}, {"name": "Filler", "value": 2}]


def test_ranked_pairs(service_frame):
    assert ranked_pairs(service_frame) == [
        ("Web → Botox", 2),
        ("Phone → Filler", 1),
        ("Email → Filler", 1),
    ]


def test_best_service_by_location(service_frame):
    assert best_by_group(service_frame, "location", "service") == [
        {"location": "A", "service": "Filler", "count": 2},
        {"location": "B", "service": "Botox", "count": 1},
    ]
    df = records_frame(
        make_records(
            ("2024-01-01", "Web", "A", "Botox"),
            ("2024-01-02", "Web", "A", "Filler"),
        )
    )
    assert best_by_group(df) == [{"location": "A", "service": "Botox", "count": 1}]
