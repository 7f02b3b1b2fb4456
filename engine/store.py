"""Record store interfaces: whole-collection load/save of canonical records."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence

from engine.records import Record, record_from_dict

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Holds the canonical record collection."""

    @abstractmethod
    def load(self) -> List[Record]:
        """Return every stored record; an empty list when nothing usable is stored."""

    @abstractmethod
    def save(self, records: Sequence[Record]) -> None:
        """Replace the stored collection."""


class MemoryStore(RecordStore):
    def __init__(self, records: Sequence[Record] = ()) -> None:
        self._records: List[Record] = list(records)

    def load(self) -> List[Record]:
        return list(self._records)

    def save(self, records: Sequence[Record]) -> None:
        self._records = list(records)


class JsonFileStore(RecordStore):
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> List[Record]:
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Unreadable record snapshot at %s; starting empty", self.path)
            return []
        if not isinstance(payload, list):
            logger.warning("Record snapshot at %s is not a list; starting empty", self.path)
            return []
        records: List[Record] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            rec = record_from_dict(item)
            if rec is not None:
                records.append(rec)
        return records

    def save(self, records: Sequence[Record]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps([r.to_dict() for r in records], indent=2), encoding="utf-8")
        tmp.replace(self.path)
