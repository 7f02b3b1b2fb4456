from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

import pandas as pd

from engine.records import coerce_date

ALL = "ALL"


@dataclass(frozen=True)
class FilterSpec:
    """Dimension memberships plus an inclusive date range.

    An empty membership tuple accepts every value; a None bound leaves that
    side of the range open.
    """

    sources: Tuple[str, ...] = field(default_factory=tuple)
    locations: Tuple[str, ...] = field(default_factory=tuple)
    services: Tuple[str, ...] = field(default_factory=tuple)
    date_from: Optional[str] = None
    date_to: Optional[str] = None

    def with_range(self, date_from: Optional[str], date_to: Optional[str]) -> "FilterSpec":
        return FilterSpec(
            sources=self.sources,
            locations=self.locations,
            services=self.services,
            date_from=date_from,
            date_to=date_to,
        )


def _as_str_tuple(values: object) -> Tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        values = [values]
    out = []
    for v in values:  # type: ignore[union-attr]
        if v is None:
            continue
        s = str(v).strip()
        if not s or s.upper() == ALL or s in out:
            continue
        out.append(s)
    return tuple(out)


def year_range(year: int) -> Tuple[str, str]:
    return f"{int(year):04d}-01-01", f"{int(year):04d}-12-31"


def normalize_filter_spec(raw: dict) -> FilterSpec:
    date_from = coerce_date(raw.get("date_from"))
    date_to = coerce_date(raw.get("date_to"))

    year = raw.get("year")
    if year not in (None, "", ALL):
        try:
            y_from, y_to = year_range(int(year))
        except (TypeError, ValueError):
            y_from = y_to = None
        if y_from is not None:
            date_from = max(date_from, y_from) if date_from else y_from
            date_to = min(date_to, y_to) if date_to else y_to

    return FilterSpec(
        sources=_as_str_tuple(raw.get("sources")),
        locations=_as_str_tuple(raw.get("locations")),
        services=_as_str_tuple(raw.get("services")),
        date_from=date_from,
        date_to=date_to,
    )


def _membership(series: pd.Series, accepted: Iterable[str]) -> pd.Series:
    accepted = set(accepted)
    if not accepted:
        return pd.Series(True, index=series.index)
    return series.isin(accepted) & series.notna()


def filter_records(df: pd.DataFrame, spec: FilterSpec) -> pd.DataFrame:
    """Rows of ``df`` matching ``spec``, in input order."""
    if df.empty:
        return df
    mask = (
        _membership(df["source"], spec.sources)
        & _membership(df["location"], spec.locations)
        & _membership(df["service"], spec.services)
    )
    if spec.date_from:
        mask &= df["date"] >= spec.date_from
    if spec.date_to:
        mask &= df["date"] <= spec.date_to
    return df[mask]
