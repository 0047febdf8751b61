"""Pivot model and view controller for the contact snapshot report."""

from contact_snapshot.pivot.model import Counselor, MonthCell, PivotModel, build_pivot
from contact_snapshot.pivot.view import (
    FetchStatus,
    TypeBreakdown,
    ViewController,
    ViewState,
    type_breakdown,
)

__all__ = [
    "Counselor",
    "MonthCell",
    "PivotModel",
    "build_pivot",
    "FetchStatus",
    "TypeBreakdown",
    "ViewController",
    "ViewState",
    "type_breakdown",
]
