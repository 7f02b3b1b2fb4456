from __future__ import annotations

from typing import List

import pandas as pd
import pytest

from engine.data import records_frame
from engine.records import Record
from engine.store import MemoryStore
from tests.record_factories import make_records


@pytest.fixture()
def sample_records() -> List[Record]:
    return make_records(
        ("2024-01-05", "Web", "A"),
        ("2024-02-10", "Phone", "B"),
        ("2024-02-15", "Web", "A"),
    )


@pytest.fixture()
def sample_frame(sample_records) -> pd.DataFrame:
    return records_frame(sample_records)


@pytest.fixture()
def service_frame() -> pd.DataFrame:
    return records_frame(
        make_records(
            ("2024-01-02", "Web", "A", "Botox"),
            ("2024-01-09", "Phone", "A", "Filler"),
            ("2024-03-20", "Web", "B", "Botox"),
            ("2024-04-01", "Phone", "A", None),
            ("2024-07-15", "Email", "A", "Filler"),
        )
    )


@pytest.fixture()
def memory_store() -> MemoryStore:
    return MemoryStore()
