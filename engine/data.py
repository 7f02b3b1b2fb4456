from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from engine.records import ISO_FORMAT, Record, Rejected, clean_text, normalize_rows
from engine.store import JsonFileStore, RecordStore

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
STORE_FILENAME = "appointment_records.json"
STORE_PATH_ENV = "APPOINTMENTS_STORE_PATH"
PAGE_SIZE = 10

RECORD_COLUMNS = ["date", "location", "source", "service"]
DIMENSIONS = ("source", "location", "service")


@dataclass(frozen=True)
class IngestReport:
    accepted: int
    rejected: int
    total_records: int
    rejections: List[Rejected] = field(default_factory=list)


@dataclass(frozen=True)
class Page:
    rows: List[Dict[str, str]]
    page: int
    total_pages: int
    total_rows: int


def store_path() -> Path:
    override = os.environ.get(STORE_PATH_ENV, "").strip()
    return Path(override) if override else DATA_DIR / STORE_FILENAME


def get_store() -> RecordStore:
    return JsonFileStore(store_path())


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


# ---------------- Frames ----------------
def records_frame(records: Iterable[Record]) -> pd.DataFrame:
    rows = [(r.date, r.location, r.source, r.service) for r in records]
    return pd.DataFrame(rows, columns=RECORD_COLUMNS, dtype=object)


def frame_records(df: pd.DataFrame) -> List[Record]:
    out: List[Record] = []
    for row in df[RECORD_COLUMNS].itertuples(index=False):
        out.append(Record(date=row.date, location=row.location, source=row.source, service=clean_text(row.service)))
    return out


def frame_rows(df: pd.DataFrame) -> List[Dict[str, str]]:
    return [r.to_dict() for r in frame_records(df)]


def parse_dates(df: pd.DataFrame) -> pd.Series:
    return pd.to_datetime(df["date"], format=ISO_FORMAT)


def load_record_frame(store: RecordStore) -> pd.DataFrame:
    return records_frame(store.load())


# ---------------- Ingestion ----------------
def read_spreadsheet_rows(source: Any, filename: Optional[str] = None) -> List[Dict[Any, Any]]:
    """Decode the first sheet of a workbook (or a CSV file) into raw row mappings.

    Empty cells come back as ``""``; everything else keeps the type the reader
    produced (Timestamps for date cells, numbers for serial dates).
    """
    name = filename or getattr(source, "name", None) or str(source)
    if str(name).lower().endswith(".csv"):
        df = pd.read_csv(source, dtype=str, keep_default_na=False)
    else:
        df = pd.read_excel(source, sheet_name=0, dtype=object)
    df = drop_duplicate_columns(df).astype(object)
    df = df.where(pd.notna(df), "")
    return df.to_dict(orient="records")


def ingest_rows(rows: Iterable[Mapping[Any, Any]], store: RecordStore) -> IngestReport:
    accepted, rejected = normalize_rows(rows)
    for r in rejected:
        logger.debug("Dropped row %s: %s", r.row_number, r.reason)
    merged = store.load() + accepted
    store.save(merged)
    logger.info("Ingested %d rows (%d rejected); store now holds %d records", len(accepted), len(rejected), len(merged))
    return IngestReport(accepted=len(accepted), rejected=len(rejected), total_records=len(merged), rejections=rejected)


# ---------------- Listing ----------------
def sort_recent_first(df: pd.DataFrame) -> pd.DataFrame:
    return df.sort_values("date", ascending=False, kind="stable")


def paginate(df: pd.DataFrame, page: int = 1, page_size: int = PAGE_SIZE) -> Page:
    page_size = max(1, int(page_size))
    total_rows = int(len(df))
    total_pages = max(1, math.ceil(total_rows / page_size))
    page = max(1, min(int(page), total_pages))
    start = (page - 1) * page_size
    return Page(
        rows=frame_rows(df.iloc[start : start + page_size]),
        page=page,
        total_pages=total_pages,
        total_rows=total_rows,
    )


def dimension_options(df: pd.DataFrame) -> Dict[str, List[str]]:
    return {
        "sources": [str(x) for x in pd.unique(df["source"])],
        "locations": [str(x) for x in pd.unique(df["location"])],
        "services": [str(x) for x in pd.unique(df["service"].dropna())],
    }


def available_years(df: pd.DataFrame) -> List[int]:
    if df.empty:
        return []
    return sorted({int(y) for y in parse_dates(df).dt.year}, reverse=True)

