from __future__ import annotations

from contact_snapshot.aggregate.resolver import AggregationResolver, Resolution
from contact_snapshot.errors import PrimarySourceUnavailable, SourceError
from contact_snapshot.models import Role
from contact_snapshot.pivot.model import build_pivot
from contact_snapshot.pivot.view import FetchStatus, ViewController, type_breakdown

from conftest import StubSource, cell


def _controller(window, cells=None, role=Role.ADMIN, identity=None) -> ViewController:
    resolver = AggregationResolver(StubSource("precomputed", cells=cells or []), StubSource("raw_records"))
    return ViewController(resolver, role=role, identity=identity, window=window)


def _resolution(window, cells) -> Resolution:
    return Resolution(cells=tuple(cells), source="precomputed", window=tuple(window))


def test_toggle_keeps_at_most_one_row_expanded(window) -> None:
    vc = _controller(window)
    vc.toggle_expanded("C1")
    vc.toggle_expanded("C2")
    assert vc.state.expanded_counselor_id == "C2"
    vc.toggle_expanded("C2")
    assert vc.state.expanded_counselor_id is None


def test_select_month_does_not_touch_model(window, sample_cells) -> None:
    vc = _controller(window, sample_cells)
    model = vc.refresh("S1")
    vc.select_month("2024-09")
    assert vc.state.selected_month == "2024-09"
    assert vc.model is model


def test_breakdown_omits_zero_types_and_uses_canonical_order(window) -> None:
    cells = [
        cell("C1", "Ann", "2024-10", "text_message", 1),
        cell("C1", "Ann", "2024-09", "email", 2),
        cell("C1", "Ann", "2024-11", "meeting", 4),
        cell("C2", "Bob", "2024-09", "phone_call", 6),
    ]
    model = build_pivot(cells, Role.ADMIN, window=window)

    rows = type_breakdown(model, "C1")

    assert [r.contact_type for r in rows] == ["meeting", "email", "text_message"]
    assert all(r.total > 0 for r in rows)
    email = rows[1]
    assert email.label == "Email"
    assert len(email.by_month) == 11
    assert dict(email.by_month)["2024-09"] == 2
    assert email.total == 2
    assert type_breakdown(model, "C9") == []


def test_late_response_from_superseded_fetch_is_discarded(window) -> None:
    vc = _controller(window)
    old = vc.begin_fetch()
    new = vc.begin_fetch()

    assert vc.complete_fetch(new, _resolution(window, [cell("C2", "Bob", "2024-10", "email", 1)]))
    assert not vc.complete_fetch(old, _resolution(window, [cell("C1", "Ann", "2024-10", "email", 9)]))
    assert not vc.fail_fetch(old, SourceError("timeout"))

    assert [c.id for c in vc.model.counselors] == ["C2"]
    assert vc.status is FetchStatus.READY


def test_failed_fetch_is_terminal_until_retry(window, sample_cells) -> None:
    primary = StubSource("precomputed", error=PrimarySourceUnavailable("down"))
    fallback = StubSource("raw_records", error=SourceError("down too"))
    vc = ViewController(AggregationResolver(primary, fallback), role=Role.ADMIN, window=window)

    model = vc.refresh("S1")
    assert vc.status is FetchStatus.FAILED
    assert vc.error
    assert model.is_empty and model.grand_total == 0

    fallback.error = None
    fallback.cells = sample_cells
    vc.refresh("S1")
    assert vc.status is FetchStatus.READY
    assert vc.error is None
    assert vc.model.grand_total == 10
    assert vc.resolution.used_fallback


def test_changing_role_rebuilds_model_and_collapses_hidden_row(window, sample_cells) -> None:
    vc = _controller(window, sample_cells)
    vc.refresh("S1")
    vc.toggle_expanded("C1")

    model = vc.set_context(Role.COUNSELOR, "C2")

    assert [c.name for c in model.counselors] == ["Bob"]
    assert model.grand_total == 5
    assert vc.state.expanded_counselor_id is None
    assert vc.expanded_breakdown() == []


def test_expanded_breakdown_follows_state(window, sample_cells) -> None:
    vc = _controller(window, sample_cells)
    vc.refresh("S1")
    vc.toggle_expanded("C1")
    assert [r.contact_type for r in vc.expanded_breakdown()] == ["meeting", "email"]


def test_new_scope_without_expanded_counselor_collapses_row(window, sample_cells) -> None:
    vc = _controller(window)
    vc.complete_fetch(vc.begin_fetch(), _resolution(window, sample_cells))
    vc.toggle_expanded("C1")

    other_school = [cell("C3", "Cy", "2024-11", "meeting", 2)]
    assert vc.complete_fetch(vc.begin_fetch(), _resolution(window, other_school))

    assert vc.state.expanded_counselor_id is None
    assert vc.expanded_breakdown() == []


def test_new_scope_keeps_expansion_of_counselor_still_present(window, sample_cells) -> None:
    vc = _controller(window)
    vc.complete_fetch(vc.begin_fetch(), _resolution(window, sample_cells))
    vc.toggle_expanded("C2")

    vc.complete_fetch(vc.begin_fetch(), _resolution(window, [cell("C2", "Bob", "2024-12", "email", 1)]))

    assert vc.state.expanded_counselor_id == "C2"
