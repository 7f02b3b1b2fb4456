from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

GranularityName = Literal["YEAR", "QUARTER", "MONTH", "WEEK", "DAY"]
PresetName = Literal["MONTH", "QUARTER", "YEAR"]


class FilterSpecModel(BaseModel):
    sources: List[str] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    services: List[str] = Field(default_factory=list)
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    year: Optional[int] = None


class PeriodModel(BaseModel):
    date_from: Optional[str] = None
    date_to: Optional[str] = None


class ComparisonRequest(BaseModel):
    filters: FilterSpecModel = Field(default_factory=FilterSpecModel)
    current: PeriodModel = Field(default_factory=PeriodModel)
    previous: PeriodModel = Field(default_factory=PeriodModel)
    preset: Optional[PresetName] = None


class IngestRequest(BaseModel):
    rows: List[Dict[str, Any]] = Field(default_factory=list)


class IngestResponse(BaseModel):
    accepted: int
    rejected: int
    total_records: int


class MetaOptionsResponse(BaseModel):
    sources: List[str]
    locations: List[str]
    services: List[str]
    years: List[int]
