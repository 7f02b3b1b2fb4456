from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple, Union

import pandas as pd

from engine.data import DIMENSIONS

PLACEHOLDER = "—"
PAIR_SEPARATOR = " → "

KeyFn = Union[str, Callable[[pd.DataFrame], pd.Series]]


@dataclass(frozen=True)
class KpiSummary:
    total: int
    top: Dict[str, str] = field(default_factory=dict)
    bottom: Dict[str, str] = field(default_factory=dict)


def _check_dimension(dimension: str) -> str:
    if dimension not in DIMENSIONS:
        raise ValueError(f"Unknown dimension: {dimension!r}")
    return dimension


def group_count_by(df: pd.DataFrame, key: KeyFn) -> List[Tuple[str, int]]:
    """(label, count) pairs in first-encountered order; rows with no key are skipped."""
    if df.empty:
        return []
    keys = df[key] if isinstance(key, str) else key(df)
    keys = keys.dropna()
    if keys.empty:
        return []
    sizes = keys.groupby(keys, sort=False).size()
    return [(str(k), int(v)) for k, v in sizes.items()]


def top_by(df: pd.DataFrame, dimension: str) -> str:
    pairs = group_count_by(df, _check_dimension(dimension))
    if not pairs:
        return PLACEHOLDER
    # max/min keep the first of equal counts
    return max(pairs, key=lambda p: p[1])[0]


def bottom_by(df: pd.DataFrame, dimension: str) -> str:
    pairs = group_count_by(df, _check_dimension(dimension))
    if not pairs:
        return PLACEHOLDER
    return min(pairs, key=lambda p: p[1])[0]


def summarize(df: pd.DataFrame) -> KpiSummary:
    return KpiSummary(
        total=int(len(df)),
        top={d: top_by(df, d) for d in DIMENSIONS},
        bottom={d: bottom_by(df, d) for d in DIMENSIONS},
    )


def pair_key(df: pd.DataFrame, first: str = "source", second: str = "service") -> pd.Series:
    has_both = df[first].notna() & df[second].notna()
    joined = df[first].astype(str) + PAIR_SEPARATOR + df[second].astype(str)
    return joined.where(has_both)


def ranked_pairs(df: pd.DataFrame, first: str = "source", second: str = "service") -> List[Tuple[str, int]]:
    """Composite ``"{first} → {second}"`` labels ranked by count, ties in first-encountered order."""
    pairs = group_count_by(df, lambda d: pair_key(d, first, second))
    return sorted(pairs, key=lambda p: -p[1])


def share_by(df: pd.DataFrame, dimension: str) -> List[Dict[str, object]]:
    return [{"name": k, "value": v} for k, v in group_count_by(df, _check_dimension(dimension))]


def best_by_group(df: pd.DataFrame, group: str = "location", item: str = "service") -> List[Dict[str, object]]:
    """For each ``group`` value, its most frequent ``item`` and that item's count."""
    if df.empty:
        return []
    base = df[df[group].notna() & df[item].notna()]
    out: List[Dict[str, object]] = []
    for name, part in base.groupby(group, sort=False):
        label, count = max(group_count_by(part, item), key=lambda p: p[1])
        out.append({group: str(name), item: label, "count": count})
    return out
