from __future__ import annotations

from typing import Any, Dict, List, Sequence

import altair as alt
import pandas as pd

from engine.bucketing import Bucket

alt.data_transformers.disable_max_rows()

ACCENT = "#6366f1"
LINE_COLOR = "#22d3ee"
AREA_FILL = "#a5b4fc"
DONUT_COLORS = ["#6366f1", "#22d3ee", "#f59e0b", "#10b981"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _bucket_frame(buckets: Sequence[Bucket]) -> pd.DataFrame:
    return pd.DataFrame({"name": [b.key for b in buckets], "value": [b.count for b in buckets]})


def bucket_chart(buckets: Sequence[Bucket], kind: str = "bar", title: str = "Appointments") -> alt.Chart:
    """Single-series chart over buckets; x keeps the bucket order."""
    df = _bucket_frame(buckets)
    order: List[str] = df["name"].tolist()
    base = alt.Chart(df)
    if kind == "line":
        mark = base.mark_line(point={"filled": True, "size": 60}, color=LINE_COLOR)
    elif kind == "area":
        mark = base.mark_area(color=AREA_FILL, line={"color": ACCENT})
    else:
        mark = base.mark_bar(color=ACCENT)
    return (
        mark.encode(
            x=alt.X("name:N", sort=order or None, title=None, axis=alt.Axis(labelAngle=0, grid=False)),
            y=alt.Y("value:Q", title=title, axis=alt.Axis(format="d", gridDash=[4, 4], domain=False, ticks=False)),
            tooltip=[alt.Tooltip("name:N", title="Bucket"), alt.Tooltip("value:Q", title=title, format=",")],
        )
        .properties(height=320)
    )


def donut_chart(data: Sequence[Dict[str, object]], title: str) -> alt.Chart:
    df = pd.DataFrame(list(data), columns=["name", "value"])
    return (
        alt.Chart(df, title=title)
        .mark_arc(innerRadius=60, outerRadius=90, padAngle=0.04)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("name:N", title=None, scale=alt.Scale(range=DONUT_COLORS)),
            tooltip=[alt.Tooltip("name:N"), alt.Tooltip("value:Q", format=",")],
        )
        .properties(height=260)
    )
