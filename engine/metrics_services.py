from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from engine.bucketing import Granularity, bucket_counts, chart_data
from engine.charts import bucket_chart, donut_chart, to_vega_spec
from engine.filters import FilterSpec, filter_records, year_range
from engine.kpis import best_by_group, ranked_pairs, share_by, top_by
from engine.metrics_dashboard import CHART_KIND


def compute_services(
    filters: FilterSpec,
    records: pd.DataFrame,
    *,
    granularity: "str | Granularity" = Granularity.MONTH,
    year: Optional[int] = None,
    top_n: int = 10,
) -> Dict[str, Any]:
    g = Granularity.parse(granularity)
    # the yearly view always spans every year
    if year is not None and g is not Granularity.YEAR:
        filters = filters.with_range(*year_range(year))
    df = filter_records(records, filters)
    buckets = bucket_counts(df, g)
    by_service = share_by(df, "service")

    return {
        "filters": asdict(filters),
        "granularity": g.value,
        "year": year,
        "kpis": {"total": int(len(df)), "top_service": top_by(df, "service")},
        "buckets": chart_data(buckets),
        "donut": by_service,
        "best_by_location": best_by_group(df, "location", "service"),
        "top_pairs": [{"name": k, "value": v} for k, v in ranked_pairs(df)[: max(1, int(top_n))]],
        "charts": {
            "trend": to_vega_spec(bucket_chart(buckets, kind=CHART_KIND[g])),
            "service_donut": to_vega_spec(donut_chart(by_service, "Appointments by Service")),
        },
    }
