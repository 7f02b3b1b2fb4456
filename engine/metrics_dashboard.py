from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from engine.bucketing import Granularity, bucket_counts, chart_data
from engine.charts import bucket_chart, donut_chart, to_vega_spec
from engine.filters import FilterSpec, filter_records
from engine.kpis import share_by, summarize

CHART_KIND = {
    Granularity.YEAR: "bar",
    Granularity.QUARTER: "bar",
    Granularity.MONTH: "area",
    Granularity.WEEK: "line",
    Granularity.DAY: "line",
}


def compute_dashboard(
    filters: FilterSpec,
    records: pd.DataFrame,
    *,
    granularity: "str | Granularity" = Granularity.MONTH,
    split_years: bool = False,
) -> Dict[str, Any]:
    g = Granularity.parse(granularity)
    df = filter_records(records, filters)
    summary = summarize(df)
    buckets = bucket_counts(df, g, split_years=split_years)
    by_source = share_by(df, "source")
    by_location = share_by(df, "location")

    return {
        "filters": asdict(filters),
        "granularity": g.value,
        "kpis": {
            "total": summary.total,
            "top_source": summary.top["source"],
            "top_location": summary.top["location"],
        },
        "buckets": chart_data(buckets),
        "donuts": {"source": by_source, "location": by_location},
        "charts": {
            "trend": to_vega_spec(bucket_chart(buckets, kind=CHART_KIND[g])),
            "source_donut": to_vega_spec(donut_chart(by_source, "Appointments by Source")),
            "location_donut": to_vega_spec(donut_chart(by_location, "Appointments by Location")),
        },
    }
