"""Immutable counselor × month × type pivot built from resolved cells."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from contact_snapshot.academic_year import CalendarMonth, window_keys
from contact_snapshot.models import AggregatedCell, Role, contact_type_sort_key

_EMPTY: Mapping = MappingProxyType({})


@dataclass(frozen=True)
class Counselor:
    id: str
    name: str

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.name.casefold(), self.id)


@dataclass(frozen=True)
class MonthCell:
    """Contacts of one counselor in one month; `total == sum(by_type.values())`."""
    total: int
    by_type: Mapping[str, int]


@dataclass(frozen=True)
class PivotModel:
    """Counselor × month × type counts with row, column and grand totals.

    Attributes:
        months: Months shown as columns (the academic-year window).
        counselors: Visible counselors sorted by name, ties by id.
        cells_by_counselor: counselor id → month key → `MonthCell`.
        month_totals: month key → contacts across visible counselors.
        counselor_totals: counselor id → contacts across the window.
        grand_total: All visible contacts.
    """
    months: tuple[CalendarMonth, ...] = ()
    counselors: tuple[Counselor, ...] = ()
    cells_by_counselor: Mapping[str, Mapping[str, MonthCell]] = field(default_factory=lambda: _EMPTY)
    month_totals: Mapping[str, int] = field(default_factory=lambda: _EMPTY)
    counselor_totals: Mapping[str, int] = field(default_factory=lambda: _EMPTY)
    grand_total: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.counselors

    def cell(self, counselor_id: str, month: str) -> MonthCell | None:
        return self.cells_by_counselor.get(counselor_id, _EMPTY).get(month)

    def count(self, counselor_id: str, month: str, contact_type: str | None = None) -> int:
        """Count for a counselor and month, optionally for one type; 0 when absent."""
        c = self.cell(counselor_id, month)
        if c is None:
            return 0
        if contact_type is None:
            return c.total
        return c.by_type.get(contact_type, 0)


def _visible(cells: Iterable[AggregatedCell], role: Role, identity: str | None) -> list[AggregatedCell]:
    if Role(role) is Role.ADMIN:
        return list(cells)
    return [c for c in cells if c.counselor_id == identity]


def build_pivot(
    cells: Iterable[AggregatedCell],
    role: Role | str,
    identity: str | None = None,
    window: Sequence[CalendarMonth] | None = None,
) -> PivotModel:
    """Fold resolved cells into a `PivotModel`.

    Non-admin callers only see cells whose counselor is `identity`. The
    result does not depend on the order of `cells`; when one counselor id
    carries several names the smallest name is used.

    Args:
        cells: Resolved aggregated cells.
        role: Caller role (trusted as given).
        identity: Counselor id of the caller when not an admin.
        window: Months to expose as columns; cells dated outside it are
            dropped so totals match the columns. Defaults to the months present.
    """
    visible = _visible(cells, Role(role), identity)
    if window is not None:
        keys = window_keys(window)
        visible = [c for c in visible if c.month in keys]

    names: dict[str, str] = {}
    by_type: dict[str, dict[str, dict[str, int]]] = defaultdict(lambda: defaultdict(dict))
    for c in visible:
        prev = names.get(c.counselor_id)
        names[c.counselor_id] = c.counselor_name if prev is None else min(prev, c.counselor_name)
        types = by_type[c.counselor_id][c.month]
        types[c.contact_type] = types.get(c.contact_type, 0) + c.count

    cells_by_counselor: dict[str, Mapping[str, MonthCell]] = {}
    month_totals: dict[str, int] = defaultdict(int)
    counselor_totals: dict[str, int] = {}
    for cid in sorted(by_type):
        months: dict[str, MonthCell] = {}
        for month in sorted(by_type[cid]):
            types = by_type[cid][month]
            ordered = {t: types[t] for t in sorted(types, key=contact_type_sort_key)}
            total = sum(ordered.values())
            months[month] = MonthCell(total=total, by_type=MappingProxyType(ordered))
            month_totals[month] += total
        cells_by_counselor[cid] = MappingProxyType(months)
        counselor_totals[cid] = sum(m.total for m in months.values())

    counselors = sorted((Counselor(id=cid, name=name) for cid, name in names.items()), key=lambda c: c.sort_key)

    if window is None:
        columns = tuple(
            CalendarMonth(year=int(k[:4]), month=int(k[5:7])) for k in sorted(month_totals)
        )
    else:
        columns = tuple(window)

    return PivotModel(
        months=columns,
        counselors=tuple(counselors),
        cells_by_counselor=MappingProxyType(cells_by_counselor),
        month_totals=MappingProxyType({k: month_totals[k] for k in sorted(month_totals)}),
        counselor_totals=MappingProxyType(counselor_totals),
        grand_total=sum(counselor_totals.values()),
    )
