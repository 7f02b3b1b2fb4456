"""Core (UI-agnostic) appointment analytics logic.

This package contains:
- record normalization (spreadsheet rows -> canonical records)
- the record store (JSON snapshot)
- filter specs and filtering
- calendar bucketing, KPIs and period comparison
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
