from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from engine.bucketing import chart_data
from engine.charts import bucket_chart, to_vega_spec
from engine.comparison import compare
from engine.filters import FilterSpec


def compute_comparison(current: FilterSpec, previous: FilterSpec, records: pd.DataFrame) -> Dict[str, Any]:
    result = compare(records, current, previous)
    return {
        "filters": {"current": asdict(current), "previous": asdict(previous)},
        "kpis": {
            "total_current": result.total_current,
            "total_previous": result.total_previous,
            "growth_percent": result.growth_percent,
            "best_source": result.best_source,
            "worst_source": result.worst_source,
        },
        "series": {
            "current_weekly": chart_data(result.current_weekly),
            "previous_weekly": chart_data(result.previous_weekly),
            "current_daily": chart_data(result.current_daily),
            "previous_daily": chart_data(result.previous_daily),
        },
        "source_deltas": result.source_deltas,
        "charts": {
            "current_daily": to_vega_spec(bucket_chart(result.current_daily, kind="line")),
            "previous_daily": to_vega_spec(bucket_chart(result.previous_daily, kind="line")),
        },
    }
