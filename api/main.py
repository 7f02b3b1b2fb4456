from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from fastapi.encoders import jsonable_encoder

from api.schemas import ComparisonRequest, FilterSpecModel, GranularityName, IngestRequest, IngestResponse, MetaOptionsResponse
from engine.comparison import comparison_export_frame, preset_periods
from engine.data import PAGE_SIZE, available_years, dimension_options, get_store, ingest_rows, load_record_frame
from engine.filters import FilterSpec, filter_records, normalize_filter_spec
from engine.metrics_admin import compute_admin
from engine.metrics_comparison import compute_comparison
from engine.metrics_dashboard import compute_dashboard
from engine.metrics_services import compute_services
from engine.store import RecordStore


app = FastAPI(title="Appointments Analytics API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _spec_from_model(model: FilterSpecModel) -> FilterSpec:
    return normalize_filter_spec(model.model_dump())


def _period_specs(req: ComparisonRequest) -> tuple[FilterSpec, FilterSpec]:
    base = _spec_from_model(req.filters)
    if req.preset:
        current, previous = preset_periods(req.preset)
        return base.with_range(*current), base.with_range(*previous)
    cur = normalize_filter_spec(req.current.model_dump())
    prev = normalize_filter_spec(req.previous.model_dump())
    return base.with_range(cur.date_from, cur.date_to), base.with_range(prev.date_from, prev.date_to)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/options")
def meta_options(store: RecordStore = Depends(get_store)):
    try:
        records = load_record_frame(store)
        payload = MetaOptionsResponse(**dimension_options(records), years=available_years(records))
        return _json(payload.model_dump())
    except Exception as exc:
        logger.exception("meta_options failed")
        return _error(exc)


@app.get("/records")
def list_records(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=PAGE_SIZE, ge=1, le=500),
    source: Optional[str] = Query(default=None),
    location: Optional[str] = Query(default=None),
    date_from: Optional[str] = Query(default=None),
    date_to: Optional[str] = Query(default=None),
    store: RecordStore = Depends(get_store),
):
    try:
        spec = normalize_filter_spec(
            {"sources": source, "locations": location, "date_from": date_from, "date_to": date_to}
        )
        return _json(compute_admin(spec, load_record_frame(store), page=page, page_size=page_size))
    except Exception as exc:
        logger.exception("list_records failed")
        return _error(exc)


@app.post("/records")
def upload_records(req: IngestRequest, store: RecordStore = Depends(get_store)):
    try:
        report = ingest_rows(req.rows, store)
        payload = IngestResponse(accepted=report.accepted, rejected=report.rejected, total_records=report.total_records)
        return _json(payload.model_dump())
    except Exception as exc:
        logger.exception("upload_records failed")
        return _error(exc)


@app.post("/dashboard")
def dashboard(
    filters: FilterSpecModel,
    granularity: GranularityName = Query(default="MONTH"),
    split_years: bool = Query(default=False),
    store: RecordStore = Depends(get_store),
):
    try:
        spec = _spec_from_model(filters)
        return _json(compute_dashboard(spec, load_record_frame(store), granularity=granularity, split_years=split_years))
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(exc)


@app.post("/services")
def services(
    filters: FilterSpecModel,
    granularity: GranularityName = Query(default="MONTH"),
    top_n: int = Query(default=10, ge=1, le=200),
    store: RecordStore = Depends(get_store),
):
    try:
        year = filters.year
        spec = _spec_from_model(filters.model_copy(update={"year": None}))
        return _json(compute_services(spec, load_record_frame(store), granularity=granularity, year=year, top_n=top_n))
    except Exception as exc:
        logger.exception("services failed")
        return _error(exc)


@app.post("/comparison")
def comparison(req: ComparisonRequest, store: RecordStore = Depends(get_store)):
    try:
        current, previous = _period_specs(req)
        return _json(compute_comparison(current, previous, load_record_frame(store)))
    except Exception as exc:
        logger.exception("comparison failed")
        return _error(exc)


@app.post("/export/comparison")
def export_comparison(req: ComparisonRequest, store: RecordStore = Depends(get_store)):
    records = load_record_frame(store)
    current, previous = _period_specs(req)
    export_df = comparison_export_frame(filter_records(records, current), filter_records(records, previous))
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": "attachment; filename=comparison.csv"})
