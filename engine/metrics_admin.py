from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from engine.data import PAGE_SIZE, available_years, dimension_options, paginate, sort_recent_first
from engine.filters import FilterSpec, filter_records


def compute_admin(filters: FilterSpec, records: pd.DataFrame, *, page: int = 1, page_size: int = PAGE_SIZE) -> Dict[str, Any]:
    df = sort_recent_first(filter_records(records, filters))
    paged = paginate(df, page, page_size)
    return {
        "filters": asdict(filters),
        "options": dimension_options(records),
        "years": available_years(records),
        "page": paged.page,
        "total_pages": paged.total_pages,
        "total_rows": paged.total_rows,
        "rows": paged.rows,
    }
