"""View controller: role scoping, drill-down selection and fetch supersession.

The controller holds the only long-lived mutable state of the report: the
UI selection (`ViewState`) and the latest resolved data. Each fetch gets a
request token; a result is applied only if its token is still the latest
one issued, so a slow response for an old scope never replaces a newer one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Sequence

from contact_snapshot.academic_year import CalendarMonth, generate_window
from contact_snapshot.aggregate.resolver import AggregationResolver, Resolution
from contact_snapshot.errors import SourceError
from contact_snapshot.models import Role, contact_type_label, contact_type_sort_key
from contact_snapshot.pivot.model import PivotModel, build_pivot

log = logging.getLogger(__name__)


class FetchStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ViewState:
    """UI selection; never changes the pivot contents."""
    expanded_counselor_id: str | None = None
    selected_month: str | None = None


@dataclass(frozen=True)
class TypeBreakdown:
    """One drill-down row: a contact type's counts for one counselor."""
    contact_type: str
    label: str
    by_month: tuple[tuple[str, int], ...]
    total: int


def type_breakdown(model: PivotModel, counselor_id: str) -> list[TypeBreakdown]:
    """Per-type monthly counts for `counselor_id` across `model.months`.

    Types whose window total is zero are left out. Rows follow the canonical
    contact type order, not arrival order or magnitude.
    """
    months = model.cells_by_counselor.get(counselor_id)
    if not months:
        return []

    keys = [m.key for m in model.months]
    seen: list[str] = []
    for cell in months.values():
        for t in cell.by_type:
            if t not in seen:
                seen.append(t)

    rows = []
    for t in sorted(seen, key=contact_type_sort_key):
        by_month = tuple((k, model.count(counselor_id, k, t)) for k in keys)
        total = sum(n for _, n in by_month)
        if total == 0:
            continue
        rows.append(TypeBreakdown(contact_type=t, label=contact_type_label(t), by_month=by_month, total=total))
    return rows


class ViewController:
    """Drives one report view: fetch cycles, role scoping and drill-down."""

    def __init__(
        self,
        resolver: AggregationResolver,
        role: Role | str,
        identity: str | None = None,
        window: Sequence[CalendarMonth] | None = None,
    ) -> None:
        self.resolver = resolver
        self.role = Role(role)
        self.identity = identity
        self.window = tuple(window) if window is not None else generate_window()
        self.state = ViewState()
        self.status = FetchStatus.IDLE
        self.error: str | None = None
        self.resolution: Resolution | None = None
        self.model = PivotModel(months=self.window)
        self._latest_token = 0

    # ---- fetch cycle ----

    def begin_fetch(self) -> int:
        """Issue a new request token, superseding any fetch still in flight."""
        self._latest_token += 1
        self.status = FetchStatus.LOADING
        self.error = None
        return self._latest_token

    def is_current(self, token: int) -> bool:
        return token == self._latest_token

    def complete_fetch(self, token: int, resolution: Resolution) -> bool:
        """Apply `resolution` if `token` is still current; return whether it was applied."""
        if not self.is_current(token):
            log.info("Discarding superseded fetch result (token=%d, latest=%d)", token, self._latest_token)
            return False
        self.resolution = resolution
        self.model = self._build(resolution)
        self._drop_stale_expansion()
        self.status = FetchStatus.READY
        return True

    def fail_fetch(self, token: int, error: Exception) -> bool:
        """Record a terminal fetch error if `token` is still current."""
        if not self.is_current(token):
            return False
        self.resolution = None
        self.model = PivotModel(months=self.window)
        self.status = FetchStatus.FAILED
        self.error = str(error) or "Failed to load contact data"
        return True

    def refresh(self, scope_id: str) -> PivotModel:
        """Run one synchronous fetch-and-build cycle for `scope_id` (also used to retry)."""
        token = self.begin_fetch()
        try:
            resolution = self.resolver.resolve(self.window, scope_id)
        except SourceError as e:
            log.error("Contact snapshot fetch failed for school=%s: %s", scope_id, e)
            self.fail_fetch(token, e)
        else:
            self.complete_fetch(token, resolution)
        return self.model

    def set_context(self, role: Role | str, identity: str | None) -> PivotModel:
        """Change role/identity and rebuild the model from the data already held."""
        self.role = Role(role)
        self.identity = identity
        if self.resolution is not None:
            self.model = self._build(self.resolution)
        self._drop_stale_expansion()
        return self.model

    def _drop_stale_expansion(self) -> None:
        if self.state.expanded_counselor_id not in self.model.cells_by_counselor:
            self.state = replace(self.state, expanded_counselor_id=None)

    def _build(self, resolution: Resolution) -> PivotModel:
        return build_pivot(resolution.cells, self.role, self.identity, window=self.window)

    # ---- selection ----

    def toggle_expanded(self, counselor_id: str) -> ViewState:
        """Expand `counselor_id`, or collapse it if it is already the expanded row."""
        if self.state.expanded_counselor_id == counselor_id:
            self.state = replace(self.state, expanded_counselor_id=None)
        else:
            self.state = replace(self.state, expanded_counselor_id=counselor_id)
        return self.state

    def select_month(self, month: str | None) -> ViewState:
        self.state = replace(self.state, selected_month=month)
        return self.state

    def expanded_breakdown(self) -> list[TypeBreakdown]:
        if self.state.expanded_counselor_id is None:
            return []
        return type_breakdown(self.model, self.state.expanded_counselor_id)
