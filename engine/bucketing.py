"""Calendar bucketing of record dates.

Quarter and Month are fixed-cardinality: every bucket is emitted, zero-filled.
Year, Week and Day only emit buckets with at least one record.

Week numbers count Sunday-start weeks within the calendar year, week 1 being
the week that contains January 1:
``ceil((day_of_year + weekday_of_jan_1) / 7)`` with Sunday = 0.
Keys are ``YYYY-Www`` so weeks from different years never collide.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Sequence

import pandas as pd

from engine.data import parse_dates

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
QUARTER_LABELS = ["Q1", "Q2", "Q3", "Q4"]


class Granularity(str, Enum):
    YEAR = "YEAR"
    QUARTER = "QUARTER"
    MONTH = "MONTH"
    WEEK = "WEEK"
    DAY = "DAY"

    @classmethod
    def parse(cls, value: "str | Granularity") -> "Granularity":
        if isinstance(value, Granularity):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown granularity: {value!r}") from None


@dataclass(frozen=True)
class Bucket:
    key: str
    count: int


def week_numbers(dates: pd.Series) -> pd.Series:
    doy = dates.dt.dayofyear
    jan1 = dates - pd.to_timedelta(doy - 1, unit="D")
    jan1_weekday = (jan1.dt.dayofweek + 1) % 7
    return (doy + jan1_weekday + 6) // 7


def week_number(day: str) -> int:
    return int(week_numbers(pd.Series(pd.to_datetime([day], format="%Y-%m-%d"))).iloc[0])


def week_key(year: int, week: int) -> str:
    return f"{int(year)}-W{int(week):02d}"


def _counts(keys: pd.Series) -> Dict[object, int]:
    return {k: int(v) for k, v in keys.value_counts(sort=False).items()}


def _year_buckets(dates: pd.Series) -> List[Bucket]:
    counts = _counts(dates.dt.year)
    return [Bucket(str(int(y)), counts[y]) for y in sorted(counts)]


def _quarter_buckets(dates: pd.Series) -> List[Bucket]:
    counts = _counts(dates.dt.quarter)
    return [Bucket(label, counts.get(i, 0)) for i, label in enumerate(QUARTER_LABELS, start=1)]


def _month_buckets(dates: pd.Series, split_years: bool) -> List[Bucket]:
    years = sorted({int(y) for y in dates.dt.year})
    if split_years and len(years) > 1:
        counts = _counts(dates.dt.year * 100 + dates.dt.month)
        return [
            Bucket(f"{label} {year}", counts.get(year * 100 + m, 0))
            for year in years
            for m, label in enumerate(MONTH_LABELS, start=1)
        ]
    counts = _counts(dates.dt.month)
    return [Bucket(label, counts.get(m, 0)) for m, label in enumerate(MONTH_LABELS, start=1)]


def _week_buckets(dates: pd.Series) -> List[Bucket]:
    counts = _counts(dates.dt.year * 100 + week_numbers(dates))
    return [Bucket(week_key(k // 100, k % 100), counts[k]) for k in sorted(counts)]


def _day_buckets(df: pd.DataFrame) -> List[Bucket]:
    counts = _counts(df["date"])
    return [Bucket(str(d), counts[d]) for d in sorted(counts)]


def bucket_counts(df: pd.DataFrame, granularity: "str | Granularity", *, split_years: bool = False) -> List[Bucket]:
    """Count records per calendar bucket, in the granularity's canonical order."""
    g = Granularity.parse(granularity)
    if df.empty:
        if g is Granularity.QUARTER:
            return [Bucket(label, 0) for label in QUARTER_LABELS]
        if g is Granularity.MONTH:
            return [Bucket(label, 0) for label in MONTH_LABELS]
        return []

    dates = parse_dates(df)
    if g is Granularity.YEAR:
        return _year_buckets(dates)
    if g is Granularity.QUARTER:
        return _quarter_buckets(dates)
    if g is Granularity.MONTH:
        return _month_buckets(dates, split_years)
    if g is Granularity.WEEK:
        return _week_buckets(dates)
    return _day_buckets(df)


def chart_data(buckets: Sequence[Bucket]) -> List[Dict[str, object]]:
    return [{"name": b.key, "value": b.count} for b in buckets]
