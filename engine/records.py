from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

UNKNOWN = "Unknown"
EXCEL_EPOCH = "1899-12-30"
ISO_FORMAT = "%Y-%m-%d"

DATE_KEYS = ("date", "appointmentdate", "apptdate")
LOCATION_KEYS = ("location", "locationname", "city")
SOURCE_KEYS = ("source", "apptsource", "appointmentsource", "referralsource")
SERVICE_KEYS = ("service", "servicename", "apptservice", "appointmentservice")


@dataclass(frozen=True)
class Record:
    date: str
    location: str
    source: str
    service: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        out = {"date": self.date, "location": self.location, "source": self.source}
        if self.service is not None:
            out["service"] = self.service
        return out


@dataclass(frozen=True)
class Accepted:
    record: Record
    accepted: bool = True


@dataclass(frozen=True)
class Rejected:
    row_number: int
    reason: str
    accepted: bool = False


Outcome = Union[Accepted, Rejected]


def normalize_key(key: object) -> str:
    return re.sub(r"[\s_]+", "", str(key)).lower()


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _first_present(row: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for k in keys:
        value = row.get(k)
        if not _is_blank(value):
            return value
    return None


def coerce_date(value: object) -> Optional[str]:
    """Coerce a date-like cell to ``YYYY-MM-DD``.

    Accepts native dates (``date``/``datetime``/``Timestamp``/``datetime64``),
    spreadsheet serial day numbers counted from 1899-12-30, and free-text
    strings. Returns None when none of those shapes apply, for a zero serial,
    and for dates the stored ``YYYY-MM-DD`` form cannot be parsed back from.
    """
    if _is_blank(value) or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (date, np.datetime64)):
            parsed = pd.Timestamp(value)
        elif isinstance(value, (int, float, np.integer, np.floating)):
            serial = float(value)
            if not math.isfinite(serial) or serial == 0:
                return None
            parsed = pd.Timestamp(EXCEL_EPOCH) + pd.Timedelta(days=math.floor(serial))
        else:
            parsed = pd.to_datetime(str(value).strip(), errors="coerce")
        if pd.isna(parsed):
            return None
        iso = parsed.date().isoformat()
        # same parse that reloads and buckets stored dates
        pd.to_datetime(iso, format=ISO_FORMAT)
    except (OverflowError, ValueError, TypeError):
        return None
    return iso


def clean_text(value: object) -> Optional[str]:
    if _is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def normalize_row(row: Mapping[object, Any], row_number: int = 0) -> Outcome:
    normalized = {normalize_key(k): v for k, v in row.items()}

    raw_date = _first_present(normalized, DATE_KEYS)
    if raw_date is None:
        return Rejected(row_number, "missing date")
    day = coerce_date(raw_date)
    if day is None:
        return Rejected(row_number, "unparseable date")

    location = clean_text(_first_present(normalized, LOCATION_KEYS)) or UNKNOWN
    source = clean_text(_first_present(normalized, SOURCE_KEYS)) or UNKNOWN
    service = clean_text(_first_present(normalized, SERVICE_KEYS))
    return Accepted(Record(date=day, location=location, source=source, service=service))


def normalize_rows(rows: Iterable[Mapping[object, Any]]) -> Tuple[List[Record], List[Rejected]]:
    accepted: List[Record] = []
    rejected: List[Rejected] = []
    for idx, row in enumerate(rows, start=1):
        outcome = normalize_row(row, row_number=idx)
        if isinstance(outcome, Accepted):
            accepted.append(outcome.record)
        else:
            rejected.append(outcome)
    return accepted, rejected


def record_from_dict(data: Mapping[str, Any]) -> Optional[Record]:
    """Rebuild a stored record; None for entries that are not valid records."""
    outcome = normalize_row(data)
    return outcome.record if isinstance(outcome, Accepted) else None
