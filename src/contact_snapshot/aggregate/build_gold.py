"""Gold aggregation functions.

Functions in this module build the precomputed contact snapshot from the
raw notes collection. The result is small (one row per school, counselor,
month and type), so it is computed eagerly and upserted into MongoDB where
the report's primary source reads it.

Expectations:
- Input: a Dask DataFrame with `school_id`, `counselor_id`, `created_at`,
  and optionally `note_type` and `counselor_name`
- Output: a Dask DataFrame with columns `school_id`, `counselor_id`,
  `counselor_name`, `month`, `contact_type`, `contact_count`
"""
from __future__ import annotations

from typing import Any

from contact_snapshot.models import DEFAULT_CONTACT_TYPE, UNKNOWN_COUNSELOR

REQUIRED_COLUMNS = ("school_id", "counselor_id", "created_at")
MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

GOLD_KEY_FIELDS = ["school_id", "counselor_id", "month", "contact_type"]


def with_month(ddf: Any, column: str = "created_at") -> Any:
    """Add a `YYYY-MM` `month` column derived from `column` and drop rows without one.

    The month is cut from the leading characters of the value rendered as
    text, so ISO strings keep their literal month regardless of timezone.
    Works on both pandas and Dask DataFrames.
    """
    x = ddf.copy()
    x["month"] = x[column].astype(str).str.slice(0, 7)
    return x[x["month"].str.match(MONTH_PATTERN, na=False)]


def gold_contact_snapshot(ddf: Any) -> Any:
    """Return monthly contact counts grouped by school, counselor and type.

    Args:
        ddf: Dask DataFrame of raw notes.

    Returns:
        Dask DataFrame with columns: `school_id`, `counselor_id`,
        `counselor_name`, `month`, `contact_type`, `contact_count`.
        Missing note types count as "general", missing names as "Unknown".

    Raises:
        ValueError: if a required column is absent.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in ddf.columns]
    if missing:
        raise ValueError(f"raw notes are missing columns: {missing}")

    x = with_month(ddf)

    if "note_type" not in x.columns:
        x = x.assign(note_type=DEFAULT_CONTACT_TYPE)
    if "counselor_name" not in x.columns:
        x = x.assign(counselor_name=UNKNOWN_COUNSELOR)

    x = x.assign(
        contact_type=x["note_type"].fillna(DEFAULT_CONTACT_TYPE).replace("", DEFAULT_CONTACT_TYPE),
        counselor_name=x["counselor_name"].fillna(UNKNOWN_COUNSELOR),
    )

    return (
        x.groupby(["school_id", "counselor_id", "counselor_name", "month", "contact_type"])
        .size()
        .reset_index()
        .rename(columns={0: "contact_count"})
    )
