from __future__ import annotations

from typing import List

from engine.records import Record


def make_records(*rows) -> List[Record]:
    """Build records from ``(date, source, location[, service])`` tuples."""
    out = []
    for row in rows:
        day, source, location, *rest = row
        out.append(Record(date=day, location=location, source=source, service=rest[0] if rest else None))
    return out
