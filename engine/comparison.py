from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

import pandas as pd

from engine.bucketing import Bucket, Granularity, bucket_counts
from engine.filters import FilterSpec, filter_records
from engine.kpis import bottom_by, group_count_by, top_by

PRESETS = ("MONTH", "QUARTER", "YEAR")
Period = Tuple[str, str]


@dataclass(frozen=True)
class ComparisonResult:
    total_current: int
    total_previous: int
    growth_percent: float
    best_source: str
    worst_source: str
    current_weekly: List[Bucket] = field(default_factory=list)
    previous_weekly: List[Bucket] = field(default_factory=list)
    current_daily: List[Bucket] = field(default_factory=list)
    previous_daily: List[Bucket] = field(default_factory=list)
    source_deltas: List[Dict[str, object]] = field(default_factory=list)


def growth_percent(current: int, previous: int) -> float:
    if previous == 0 and current == 0:
        return 0.0
    if previous == 0:
        return 100.0
    return (current - previous) / previous * 100


def source_deltas(current: pd.DataFrame, previous: pd.DataFrame) -> List[Dict[str, object]]:
    cur = dict(group_count_by(current, "source"))
    prev = dict(group_count_by(previous, "source"))
    names = list(cur) + [s for s in prev if s not in cur]
    return [{"source": s, "delta": cur.get(s, 0) - prev.get(s, 0)} for s in names]


def compare(df: pd.DataFrame, current_spec: FilterSpec, previous_spec: FilterSpec) -> ComparisonResult:
    """Filter one record universe twice and compare the two periods.

    Best and worst source rank the current period's own source counts.
    """
    current = filter_records(df, current_spec)
    previous = filter_records(df, previous_spec)
    total_current = int(len(current))
    total_previous = int(len(previous))
    return ComparisonResult(
        total_current=total_current,
        total_previous=total_previous,
        growth_percent=growth_percent(total_current, total_previous),
        best_source=top_by(current, "source"),
        worst_source=bottom_by(current, "source"),
        current_weekly=bucket_counts(current, Granularity.WEEK),
        previous_weekly=bucket_counts(previous, Granularity.WEEK),
        current_daily=bucket_counts(current, Granularity.DAY),
        previous_daily=bucket_counts(previous, Granularity.DAY),
        source_deltas=source_deltas(current, previous),
    )


def _month_start(d: date) -> date:
    return d.replace(day=1)


def _shift_months(d: date, months: int) -> date:
    idx = d.year * 12 + (d.month - 1) + months
    return date(idx // 12, idx % 12 + 1, 1)


def _period(start: date, months: int) -> Period:
    end = _shift_months(start, months) - timedelta(days=1)
    return start.isoformat(), end.isoformat()


def preset_periods(preset: str, today: Optional[date] = None) -> Tuple[Period, Period]:
    """(current, previous) calendar periods of the given size around ``today``."""
    preset = str(preset).strip().upper()
    if preset not in PRESETS:
        raise ValueError(f"Unknown preset: {preset!r}")
    today = today or date.today()
    if preset == "MONTH":
        start, months = _month_start(today), 1
    elif preset == "QUARTER":
        start, months = date(today.year, (today.month - 1) // 3 * 3 + 1, 1), 3
    else:
        start, months = date(today.year, 1, 1), 12
    return _period(start, months), _period(_shift_months(start, -months), months)


def comparison_export_frame(current: pd.DataFrame, previous: pd.DataFrame) -> pd.DataFrame:
    cols = ["date", "source", "location"]
    frames = [
        current[cols].assign(Range="A"),
        previous[cols].assign(Range="B"),
    ]
    out = pd.concat(frames, ignore_index=True)
    out = out.rename(columns={"date": "Date", "source": "Source", "location": "Location"})
    return out[["Range", "Date", "Source", "Location"]]
