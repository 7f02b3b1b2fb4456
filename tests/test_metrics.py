from __future__ import annotations

from engine.filters import FilterSpec
from engine.metrics_admin import compute_admin
from engine.metrics_comparison import compute_comparison
from engine.metrics_dashboard import compute_dashboard
from engine.metrics_services import compute_services
from engine.data import records_frame


def test_dashboard_payload(sample_frame):
    payload = compute_dashboard(FilterSpec(), sample_frame, granularity="MONTH")
    assert payload["kpis"] == {"total": 3, "top_source": "Web", "top_location": "A"}
    assert payload["buckets"][:3] == [{"name": "Jan", "value": 1}, {"name": "Feb", "value": 2}, {"name": "Mar", "value": 0}]
    assert len(payload["buckets"]) == 12
    assert payload["donuts"]["source"] == [{"name": "Web", "value": 2}, {"name": "Phone", "value": 1}]
    assert set(payload["charts"]) == {"trend", "source_donut", "location_donut"}
    assert payload["charts"]["trend"]["mark"]["type"] == "area"


def test_dashboard_payload_with_no_matches(sample_frame):
    payload = compute_dashboard(FilterSpec(sources=("Fax",)), sample_frame, granularity="YEAR")
    assert payload["kpis"] == {"total": 0, "top_source": "—", "top_location": "—"}
    assert payload["buckets"] == []


def test_services_year_applies_outside_yearly_view(service_frame):
    frame = service_frame
    monthly = compute_services(FilterSpec(), frame, granularity="QUARTER", year=2023)
    assert monthly["kpis"]["total"] == 0
    yearly = compute_services(FilterSpec(), frame, granularity="YEAR", year=2023)
    assert yearly["kpis"]["total"] == 5
    assert yearly["kpis"]["top_service"] == "Botox"
    assert yearly["best_by_location"][0] == {"location": "A", "service": "Filler", "count": 2}
    assert yearly["top_pairs"][0] == {"name": "Web → Botox", "value": 2}


def test_comparison_payload(sample_frame):
    payload = compute_comparison(
        FilterSpec(date_from="2024-02-01", date_to="2024-02-29"),
        FilterSpec(date_from="2024-01-01", date_to="2024-01-31"),
        sample_frame,
    )
    assert payload["kpis"] == {
        "total_current": 2,
        "total_previous": 1,
        "growth_percent": 100.0,
        "best_source": "Phone",
        "worst_source": "Phone",
    }
    assert [p["name"] for p in payload["series"]["current_weekly"]] == ["2024-W06", "2024-W07"]


def test_admin_payload_lists_newest_first(sample_frame):
    payload = compute_admin(FilterSpec(), sample_frame, page=1, page_size=2)
    assert [r["date"] for r in payload["rows"]] == ["2024-02-15", "2024-02-10"]
    assert (payload["page"], payload["total_pages"], payload["total_rows"]) == (1, 2, 3)
    assert payload["options"]["sources"] == ["Web", "Phone"]
    assert payload["years"] == [2024]
    assert compute_admin(FilterSpec(), records_frame([]))["rows"] == []
