"""In-process folding of contacts into aggregated cells.

Used by the raw-record fallback (and to coalesce duplicate rows coming from
any source). The Gold builder in `build_gold` performs the same grouping on
Dask DataFrames ahead of time.
"""
from __future__ import annotations

from typing import Any, Iterable

import pandas as pd

from contact_snapshot.academic_year import CalendarMonth, window_keys
from contact_snapshot.models import AggregatedCell, ContactRecord

CELL_KEY = ["counselor_id", "month", "contact_type"]


def _to_cells(grouped: pd.DataFrame) -> list[AggregatedCell]:
    return [
        AggregatedCell(
            counselor_id=str(row["counselor_id"]),
            counselor_name=str(row["counselor_name"]),
            month=str(row["month"]),
            contact_type=str(row["contact_type"]),
            count=int(row["count"]),
        )
        for row in grouped.to_dict("records")
    ]


def fold_records(
    records: Iterable[ContactRecord],
    window: Iterable[CalendarMonth],
) -> list[AggregatedCell]:
    """Count records per (counselor, month, type), keeping only window months.

    Args:
        records: Parsed contact records.
        window: Months to keep; records dated outside are dropped.

    Returns:
        One `AggregatedCell` per distinct triple, sorted by the triple.
        When a counselor id carries several names the smallest is kept.
    """
    rows: list[dict[str, Any]] = [
        {
            "counselor_id": r.counselor_id,
            "counselor_name": r.counselor_name,
            "month": r.month,
            "contact_type": r.contact_type,
        }
        for r in records
    ]
    if not rows:
        return []

    pdf = pd.DataFrame(rows)
    pdf = pdf[pdf["month"].isin(window_keys(window))]
    if pdf.empty:
        return []

    grouped = (
        pdf.groupby(CELL_KEY, sort=True)
        .agg(counselor_name=("counselor_name", "min"), count=("counselor_name", "size"))
        .reset_index()
    )
    return _to_cells(grouped)


def coalesce_cells(cells: Iterable[AggregatedCell]) -> list[AggregatedCell]:
    """Merge cells sharing a (counselor, month, type) triple by summing counts."""
    rows = [c.model_dump() for c in cells]
    if not rows:
        return []

    pdf = pd.DataFrame(rows)
    grouped = (
        pdf.groupby(CELL_KEY, sort=True)
        .agg(counselor_name=("counselor_name", "min"), count=("count", "sum"))
        .reset_index()
    )
    return _to_cells(grouped)
