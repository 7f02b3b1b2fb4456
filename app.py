import logging
from contextlib import contextmanager
from datetime import date
from typing import List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from engine.bucketing import Granularity, bucket_counts
from engine.charts import bucket_chart, donut_chart
from engine.comparison import compare, comparison_export_frame, preset_periods
from engine.data import PAGE_SIZE, available_years, dimension_options, get_store, ingest_rows, load_record_frame, read_spreadsheet_rows
from engine.filters import FilterSpec, filter_records, year_range
from engine.kpis import best_by_group, ranked_pairs, share_by, summarize, top_by
from engine.metrics_admin import compute_admin
from engine.metrics_dashboard import CHART_KIND

alt.data_transformers.disable_max_rows()
logger = logging.getLogger(__name__)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .page-bar {border-bottom: 2px solid #ccfbf1;padding-bottom: 6px;margin-bottom: 12px;}
        .page-bar .page-trail {color: #0f766e;font-size: 0.8rem;letter-spacing: 0.02em;text-transform: uppercase;}
        .page-bar .page-name {color: #134e4a;font-size: 1.5rem;font-weight: 700;}
        .panel {background: #f8fafc;border-left: 4px solid #14b8a6;border-radius: 8px;padding: 12px 16px;margin-bottom: 14px;}
        .panel-title {color: #134e4a;font-weight: 600;margin-bottom: 6px;}
        .filter-chips {display: flex;flex-wrap: wrap;gap: 8px;margin: 4px 0 10px;}
        .filter-chip {background: #f0fdfa;color: #115e59;border-radius: 6px;padding: 2px 8px;font-size: 0.8rem;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='panel'><div class='panel-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(spec: FilterSpec) -> str:
    def chip(label: str, values) -> str:
        return f"{label}: {', '.join(values)}" if values else f"{label}: All"

    if spec.date_from or spec.date_to:
        range_chip = f"Dates: {spec.date_from or '…'} – {spec.date_to or '…'}"
    else:
        range_chip = "Dates: All"
    chips = [chip("Source", spec.sources), chip("Location", spec.locations), chip("Service", spec.services), range_chip]
    return "".join([f"<span class='filter-chip'>{txt}</span>" for txt in chips])


def render_page_header(title: str, breadcrumb: str, spec: FilterSpec, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='page-bar'><div class='page-trail'>{breadcrumb}</div><div class='page-name'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if st.button("Refresh"):
            st.rerun()
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    st.markdown(f"<div class='filter-chips'>{format_filter_summary(spec)}</div>", unsafe_allow_html=True)


GRANULARITY_LABELS = {
    Granularity.YEAR: "Yearly",
    Granularity.QUARTER: "Quarterly",
    Granularity.MONTH: "Monthly",
    Granularity.WEEK: "Weekly",
    Granularity.DAY: "Daily",
}


def granularity_picker(options: List[Granularity], key: str) -> Granularity:
    return st.radio(
        "View",
        options,
        index=options.index(Granularity.MONTH),
        format_func=lambda g: GRANULARITY_LABELS[g],
        horizontal=True,
        key=key,
    )


def render_trend(buckets, g: Granularity, title: str):
    with card(title):
        if not any(b.count for b in buckets):
            st.info("No appointments match the selected filters.")
        st.altair_chart(bucket_chart(buckets, kind=CHART_KIND[g]), use_container_width=True)


# ---------- UI setup ----------
st.set_page_config(page_title="Appointments Dashboard", layout="wide")
inject_base_styles()
st.title("Appointments Dashboard")
st.caption("Appointments by referral source, location and service.")

store = get_store()
records = load_record_frame(store)
options = dimension_options(records)
years = available_years(records)

# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navigate")
    role = st.selectbox("Signed in as", ["Marketing", "Admin"], index=0)
    pages = ["Dashboard", "Services", "Comparison"] + (["Admin"] if role == "Admin" else [])
    current_page = st.radio("Navigate", pages, index=0)

    st.markdown("---")
    st.markdown("### Quick filters")
    selected_sources = st.multiselect("Sources", options=options["sources"], default=[])
    selected_locations = st.multiselect("Locations", options=options["locations"], default=[])

base_spec = FilterSpec(sources=tuple(selected_sources), locations=tuple(selected_locations))


def render_dashboard_page():
    render_page_header("Dashboard", "Home / Dashboard", base_spec)
    df = filter_records(records, base_spec)
    summary = summarize(df)
    cols = st.columns(3)
    cols[0].metric("Total Appointments", f"{summary.total:,}")
    cols[1].metric("Top Source", summary.top["source"])
    cols[2].metric("Top Location", summary.top["location"])

    g = granularity_picker([Granularity.YEAR, Granularity.QUARTER, Granularity.MONTH, Granularity.DAY], key="dash_view")
    split = False
    if g is Granularity.MONTH and len(years) > 1:
        split = st.checkbox("Split months by year", value=False)
    render_trend(bucket_counts(df, g, split_years=split), g, "Appointments over time")

    donut_cols = st.columns(2)
    with donut_cols[0]:
        with card("Appointments by Source"):
            st.altair_chart(donut_chart(share_by(df, "source"), "Source"), use_container_width=True)
    with donut_cols[1]:
        with card("Appointments by Location"):
            st.altair_chart(donut_chart(share_by(df, "location"), "Location"), use_container_width=True)


def render_services_page():
    selected_services = st.multiselect("Services", options=options["services"], default=[])
    year_choice = st.selectbox("Year", ["All Years"] + years, index=0)
    g = granularity_picker([Granularity.YEAR, Granularity.QUARTER, Granularity.MONTH, Granularity.WEEK], key="svc_view")

    spec = FilterSpec(sources=base_spec.sources, locations=base_spec.locations, services=tuple(selected_services))
    if year_choice != "All Years" and g is not Granularity.YEAR:
        spec = spec.with_range(*year_range(int(year_choice)))
    render_page_header("Services", "Home / Services", spec)
    df = filter_records(records, spec)

    cols = st.columns(2)
    cols[0].metric("Total Appointments", f"{len(df):,}")
    cols[1].metric("Top Service", top_by(df, "service"))
    render_trend(bucket_counts(df, g), g, "Appointments over time")

    lower = st.columns(2)
    with lower[0]:
        with card("Appointments by Service"):
            st.altair_chart(donut_chart(share_by(df, "service"), "Service"), use_container_width=True)
    with lower[1]:
        with card("Top Source → Service pairs"):
            pairs = pd.DataFrame(ranked_pairs(df)[:10], columns=["pair", "appointments"])
            st.dataframe(pairs, hide_index=True, use_container_width=True)
    with card("Best Service by Location"):
        table = pd.DataFrame(best_by_group(df, "location", "service"), columns=["location", "service", "count"])
        st.dataframe(table.rename(columns={"count": "appointments"}), hide_index=True, use_container_width=True)


def render_comparison_page():
    preset = st.radio("Preset", ["Custom", "MONTH", "QUARTER", "YEAR"], horizontal=True, format_func=lambda p: {
        "Custom": "Custom",
        "MONTH": "This Month vs Last Month",
        "QUARTER": "This Quarter vs Last Quarter",
        "YEAR": "This Year vs Last Year",
    }[p])
    if preset == "Custom":
        c = st.columns(4)
        from_a = c[0].date_input("From (A)", value=None)
        to_a = c[1].date_input("To (A)", value=None)
        from_b = c[2].date_input("From (B)", value=None)
        to_b = c[3].date_input("To (B)", value=None)
        period_a = (from_a.isoformat() if from_a else None, to_a.isoformat() if to_a else None)
        period_b = (from_b.isoformat() if from_b else None, to_b.isoformat() if to_b else None)
    else:
        period_a, period_b = preset_periods(preset, date.today())

    spec_a = base_spec.with_range(*period_a)
    spec_b = base_spec.with_range(*period_b)
    data_a = filter_records(records, spec_a)
    data_b = filter_records(records, spec_b)
    render_page_header(
        "Comparison",
        "Home / Comparison",
        base_spec,
        export_df=comparison_export_frame(data_a, data_b),
        export_name="comparison.csv",
    )
    result = compare(records, spec_a, spec_b)

    cols = st.columns(5)
    cols[0].metric("Appointments (A)", f"{result.total_current:,}")
    cols[1].metric("Appointments (B)", f"{result.total_previous:,}")
    arrow = "▲" if result.growth_percent >= 0 else "▼"
    cols[2].metric("Growth", f"{arrow} {abs(result.growth_percent):.1f}%")
    cols[3].metric("Best Source", result.best_source)
    cols[4].metric("Worst Source", result.worst_source)

    series = st.radio("Series", ["Weekly", "Daily"], horizontal=True)
    left, right = (result.current_weekly, result.previous_weekly) if series == "Weekly" else (result.current_daily, result.previous_daily)
    chart_cols = st.columns(2)
    with chart_cols[0]:
        with card("Period A"):
            st.altair_chart(bucket_chart(left, kind="line"), use_container_width=True)
    with chart_cols[1]:
        with card("Period B"):
            st.altair_chart(bucket_chart(right, kind="line"), use_container_width=True)


def render_admin_page():
    render_page_header("Admin Panel", "Home / Admin", base_spec)
    with card("Upload appointments"):
        uploaded = st.file_uploader("Upload Excel", type=["xlsx", "xls", "csv"])
        if uploaded is not None and st.session_state.get("_last_upload") != uploaded.file_id:
            try:
                rows = read_spreadsheet_rows(uploaded, filename=uploaded.name)
            except Exception as exc:
                logger.exception("spreadsheet decode failed")
                st.error(f"Could not read {uploaded.name}: {exc}")
            else:
                report = ingest_rows(rows, store)
                st.session_state["_last_upload"] = uploaded.file_id
                st.success(f"Imported {report.accepted:,} rows ({report.rejected:,} skipped without a valid date).")
                st.rerun()

    c = st.columns(2)
    date_from = c[0].date_input("From", value=None)
    date_to = c[1].date_input("To", value=None)
    spec = base_spec.with_range(date_from.isoformat() if date_from else None, date_to.isoformat() if date_to else None)
    page = int(st.session_state.get("admin_page", 1))
    payload = compute_admin(spec, records, page=page, page_size=PAGE_SIZE)

    with card("Records"):
        st.dataframe(pd.DataFrame(payload["rows"], columns=["date", "location", "source", "service"]), hide_index=True, use_container_width=True)
        nav = st.columns([1, 2, 1])
        if nav[0].button("Prev", disabled=payload["page"] <= 1):
            st.session_state["admin_page"] = payload["page"] - 1
            st.rerun()
        nav[1].markdown(f"Page {payload['page']} of {payload['total_pages']}")
        if nav[2].button("Next", disabled=payload["page"] >= payload["total_pages"]):
            st.session_state["admin_page"] = payload["page"] + 1
            st.rerun()


if records.empty and current_page != "Admin":
    st.info("No appointments stored yet. Sign in as Admin and upload a spreadsheet.")

if current_page == "Dashboard":
    render_dashboard_page()
elif current_page == "Services":
    render_services_page()
elif current_page == "Comparison":
    render_comparison_page()
else:
    render_admin_page()
