"""pandas views of a PivotModel for the CLI and the dashboard."""

from __future__ import annotations

import pandas as pd

from contact_snapshot.pivot.model import PivotModel
from contact_snapshot.pivot.view import TypeBreakdown

TOTAL_COLUMN = "Total"
ALL_COUNSELORS = "ALL COUNSELORS"


def _month_columns(model: PivotModel) -> list[str]:
    return [f"{m.short_label} {m.year}" for m in model.months]


def grid_frame(model: PivotModel) -> pd.DataFrame:
    """Counselor × month grid with a Total column.

    A trailing "ALL COUNSELORS" row with month totals is added when more
    than one counselor is visible.
    """
    columns = _month_columns(model) + [TOTAL_COLUMN]
    rows: dict[str, list[int]] = {}
    for c in model.counselors:
        values = [model.count(c.id, m.key) for m in model.months]
        rows[c.name if c.name not in rows else f"{c.name} ({c.id})"] = values + [
            model.counselor_totals.get(c.id, 0)
        ]

    if len(model.counselors) > 1:
        rows[ALL_COUNSELORS] = [model.month_totals.get(m.key, 0) for m in model.months] + [
            model.grand_total
        ]

    return pd.DataFrame.from_dict(rows, orient="index", columns=columns)


def breakdown_frame(model: PivotModel, breakdown: list[TypeBreakdown]) -> pd.DataFrame:
    """Contact type × month counts for one expanded counselor."""
    columns = _month_columns(model) + [TOTAL_COLUMN]
    rows = {b.label: [n for _, n in b.by_month] + [b.total] for b in breakdown}
    return pd.DataFrame.from_dict(rows, orient="index", columns=columns)


def month_totals_frame(model: PivotModel) -> pd.DataFrame:
    """Long-form month totals (`month`, `label`, `contacts`) for charting."""
    return pd.DataFrame(
        [
            {
                "month": m.start,
                "label": m.short_label,
                "contacts": model.month_totals.get(m.key, 0),
            }
            for m in model.months
        ],
        columns=["month", "label", "contacts"],
    )
